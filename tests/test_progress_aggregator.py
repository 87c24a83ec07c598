from datetime import datetime, timedelta, timezone

from app.features.progress.aggregator import (
    SubmissionRecord,
    aggregate_progress,
    calculate_streak,
    submission_from_row,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _sub(score, completed=True, days_ago=0, hours=0, assignment="a1"):
    return SubmissionRecord(
        student_id="s1",
        assignment_id=assignment,
        score=score,
        completed=completed,
        submitted_at=NOW - timedelta(days=days_ago, hours=hours),
    )


def test_empty_submissions_yield_zero_metrics():
    snap = aggregate_progress([], now=NOW)
    assert snap.total_points == 0
    assert snap.completed_count == 0
    assert snap.perfect_score_count == 0
    assert snap.daily_completion_counts == {}
    assert snap.max_daily_completions == 0
    assert snap.streak == 0


def test_total_points_counts_incomplete_submissions_by_default():
    subs = [_sub(40, completed=True), _sub(25, completed=False, assignment="a2")]
    snap = aggregate_progress(subs, now=NOW)
    assert snap.total_points == 65
    assert snap.completed_count == 1


def test_total_points_can_exclude_incomplete_submissions():
    subs = [_sub(40, completed=True), _sub(25, completed=False, assignment="a2")]
    snap = aggregate_progress(subs, now=NOW, include_incomplete=False)
    assert snap.total_points == 40


def test_perfect_scores_use_threshold_of_95():
    subs = [_sub(95), _sub(94, assignment="a2"), _sub(100, assignment="a3")]
    assert aggregate_progress(subs, now=NOW).perfect_score_count == 2


def test_daily_counts_group_by_utc_day():
    subs = [
        _sub(10, days_ago=0),
        _sub(10, days_ago=0, hours=2, assignment="a2"),
        _sub(10, days_ago=1, assignment="a3"),
    ]
    snap = aggregate_progress(subs, now=NOW)
    assert snap.daily_completion_counts == {"2025-03-10": 2, "2025-03-09": 1}
    assert snap.max_daily_completions == 2


def test_streak_counts_distinct_days_inside_trailing_window():
    subs = [
        _sub(10, days_ago=0),
        _sub(10, days_ago=0, hours=1, assignment="a2"),
        _sub(10, days_ago=5, assignment="a3"),
        _sub(10, days_ago=30, assignment="a4"),
        _sub(10, days_ago=31, assignment="a5"),
    ]
    assert calculate_streak(subs, now=NOW) == 3


def test_streak_ignores_rows_without_timestamp():
    sub = SubmissionRecord("s1", "a1", 10, True, None)
    assert calculate_streak([sub], now=NOW) == 0


def test_row_normalisation_handles_nulls_and_created_at_fallback():
    row = {
        "student_id": "s1",
        "assignment_id": "a1",
        "score": None,
        "completed": None,
        "submitted_at": None,
        "created_at": "2025-03-09T08:30:00Z",
    }
    sub = submission_from_row(row)
    assert sub.score == 0
    assert sub.completed is False
    assert sub.day == "2025-03-09"


def test_completed_count_never_exceeds_submission_count():
    cases = [
        [],
        [_sub(0, completed=False)],
        [_sub(10), _sub(20, assignment="a2"), _sub(5, completed=False, assignment="a3")],
    ]
    for subs in cases:
        snap = aggregate_progress(subs, now=NOW)
        assert snap.completed_count <= len(subs)
        assert snap.total_points >= 0


def test_streak_keeps_rows_stamped_just_after_now():
    sub = SubmissionRecord("s1", "a1", 10, True, NOW + timedelta(seconds=2))
    assert calculate_streak([sub], now=NOW) == 1
    assert aggregate_progress([sub], now=NOW).streak == 1
