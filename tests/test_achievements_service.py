from datetime import datetime, timezone

import pytest

from app.common.errors import DataAccessError
from app.core.config import Settings
from app.features.achievements.repository import AchievementsRepository
from app.features.achievements.service import AchievementsService
from fakesupabase import FakeSupabase

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _service(fake: FakeSupabase) -> AchievementsService:
    return AchievementsService(repo=AchievementsRepository(client_factory=fake.factory()), settings=Settings())


def _unlock_inserts(fake: FakeSupabase):
    return [rows for table, rows in fake.inserts if table == "achievement_unlocks"]


@pytest.mark.anyio("asyncio")
async def test_single_perfect_submission_persists_one_batch():
    fake = FakeSupabase(
        {
            "submissions": [
                {"student_id": "s1", "assignment_id": "a1", "score": 100, "completed": True, "submitted_at": "2025-03-10T09:00:00Z"},
            ],
        }
    )
    result = await _service(fake).evaluate("s1", now=NOW)

    batches = _unlock_inserts(fake)
    assert len(batches) == 1
    persisted_ids = [row["achievement_id"] for row in batches[0]]
    assert persisted_ids.count("first_points") == 1
    assert set(persisted_ids) == {"first_points", "point_collector", "first_completion", "perfect_score"}
    assert all(row["student_id"] == "s1" for row in batches[0])

    first = next(a for a in result.achievements if a.id == "first_points")
    assert first.progress == 10
    assert first.unlocked is True
    assert first.newly_unlocked is True
    assert "first_points" in result.new_unlocks
    assert result.progress.total_points == 100


@pytest.mark.anyio("asyncio")
async def test_second_pass_persists_nothing():
    fake = FakeSupabase(
        {
            "submissions": [
                {"student_id": "s1", "assignment_id": "a1", "score": 100, "completed": True, "submitted_at": "2025-03-10T09:00:00Z"},
            ],
        }
    )
    service = _service(fake)
    await service.evaluate("s1", now=NOW)
    second = await service.evaluate("s1", now=NOW)

    assert len(_unlock_inserts(fake)) == 1
    assert second.new_unlocks == []
    assert "first_points" in second.unlocked


@pytest.mark.anyio("asyncio")
async def test_no_submissions_persists_nothing():
    fake = FakeSupabase()
    result = await _service(fake).evaluate("s1", now=NOW)
    first = next(a for a in result.achievements if a.id == "first_points")
    assert first.progress == 0
    assert first.unlocked is False
    assert _unlock_inserts(fake) == []
    assert result.earned_reward_points == 0


@pytest.mark.anyio("asyncio")
async def test_eco_expert_unlocks_from_action_assignment_in_class():
    fake = FakeSupabase(
        {
            "students": [{"id": "s1", "class_id": "c1"}],
            "assignments": [
                {"id": "as1", "class_id": "c1", "config": {"category": "quiz"}},
                {"id": "as2", "class_id": "c1", "config": {"category": "action"}},
            ],
        }
    )
    result = await _service(fake).evaluate("s1", now=NOW)
    assert "eco_expert" in result.new_unlocks


@pytest.mark.anyio("asyncio")
async def test_fetch_failure_propagates_without_persisting():
    fake = FakeSupabase(fail_on={"submissions"})
    with pytest.raises(DataAccessError):
        await _service(fake).evaluate("s1", now=NOW)
    assert fake.inserts == []


@pytest.mark.anyio("asyncio")
async def test_persist_failure_propagates():
    fake = FakeSupabase(
        {"submissions": [{"student_id": "s1", "assignment_id": "a1", "score": 10, "completed": True, "submitted_at": "2025-03-10T09:00:00Z"}]},
        fail_on={"achievement_unlocks:insert"},
    )
    with pytest.raises(DataAccessError) as info:
        await _service(fake).evaluate("s1", now=NOW)
    assert info.value.op == "achievement_unlocks.batch_insert"
    assert fake.inserts == []


@pytest.mark.anyio("asyncio")
async def test_progress_is_read_only():
    fake = FakeSupabase(
        {"submissions": [{"student_id": "s1", "assignment_id": "a1", "score": 50, "completed": False, "submitted_at": "2025-03-09T09:00:00Z"}]}
    )
    progress = await _service(fake).progress("s1", now=NOW)
    assert progress.total_points == 50
    assert progress.completed_count == 0
    assert progress.streak == 1
    assert fake.inserts == []


@pytest.mark.anyio("asyncio")
async def test_evaluation_steps_run_in_order():
    fake = FakeSupabase(
        {"submissions": [{"student_id": "s1", "assignment_id": "a1", "score": 10, "completed": False, "submitted_at": "2025-03-10T09:00:00Z"}]}
    )
    await _service(fake).evaluate("s1", now=NOW)
    assert fake.calls[0] == ("submissions", "select")
    assert fake.calls[1] == ("achievement_unlocks", "select")
    assert fake.calls[-1] == ("achievement_unlocks", "insert")


def test_definitions_are_listed():
    service = _service(FakeSupabase())
    ids = [d.id for d in service.list_definitions()]
    assert ids[0] == "first_points"
    assert len(ids) == 14
