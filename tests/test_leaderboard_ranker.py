import random

from app.features.leaderboard.ranker import SCHOOL_BADGES, badge_for, rank_entries


def _rank(totals):
    items = [{"id": f"e{i:02d}", "total": t} for i, t in enumerate(totals)]
    return rank_entries(items, total=lambda i: i["total"], key=lambda i: i["id"])


def test_ranks_are_a_gapless_permutation():
    rng = random.Random(7)
    for _ in range(25):
        totals = [rng.randint(0, 20) for _ in range(rng.randint(0, 15))]
        ranked = _rank(totals)
        assert sorted(e.rank for e in ranked) == list(range(1, len(totals) + 1))


def test_higher_totals_always_rank_better():
    ranked = _rank([300, 1200, 50, 1200, 700])
    for a in ranked:
        for b in ranked:
            if a.total > b.total:
                assert a.rank < b.rank


def test_ties_get_distinct_consecutive_ranks():
    ranked = _rank([500, 500])
    assert sorted(e.rank for e in ranked) == [1, 2]


def test_tie_order_does_not_depend_on_input_order():
    items = [{"id": "b", "total": 500}, {"id": "a", "total": 500}, {"id": "c", "total": 100}]
    forward = rank_entries(items, total=lambda i: i["total"], key=lambda i: i["id"])
    backward = rank_entries(list(reversed(items)), total=lambda i: i["total"], key=lambda i: i["id"])
    assert [e.item["id"] for e in forward] == [e.item["id"] for e in backward]


def test_top_three_get_badges():
    ranked = _rank([40, 30, 20, 10])
    assert [e.badge for e in ranked] == ["🥇", "🥈", "🥉", ""]


def test_school_badges():
    assert badge_for(1, SCHOOL_BADGES) == "🏆"
    assert badge_for(4, SCHOOL_BADGES) == ""


def test_empty_input():
    assert _rank([]) == []
