"""Tests for worktracker/allocation.py — shares, deltas, insights, over/under."""

import pytest

from worktracker.aggregation import compute_stats
from worktracker.allocation import (
    actual_percentages,
    allocation_deltas,
    allocation_insights,
    allocation_warning,
    analyze,
    category_breakdown,
    delta_band,
    over_under,
    over_under_label,
    weekly_distribution,
)
from worktracker.models import AllocationConfig, Category, Settings


R, T, S, O = Category.RESEARCH, Category.TEACHING, Category.SERVICE, Category.OTHER


def test_deltas_against_default_targets():
    actual = actual_percentages({R: 30, T: 50, S: 20, O: 12}, 100)
    deltas = allocation_deltas(actual, AllocationConfig(), 100)
    assert deltas[R] == pytest.approx(-10)
    assert deltas[T] == pytest.approx(10)
    assert deltas[S] == pytest.approx(0)


def test_no_working_hours_gives_zero_shares():
    actual = actual_percentages({R: 0, T: 0, S: 0, O: 8}, 0)
    assert actual == {R: 0.0, T: 0.0, S: 0.0}
    deltas = allocation_deltas(actual, AllocationConfig(), working_total=0)
    assert deltas == {R: 0.0, T: 0.0, S: 0.0}


def test_shares_sum_to_100_and_exclude_other():
    actual = actual_percentages({R: 1, T: 1, S: 1, O: 50}, 3)
    assert O not in actual
    assert sum(actual.values()) == pytest.approx(100)


def test_insights_for_large_deltas():
    insights = allocation_insights({R: -10.0, T: 10.0, S: 0.0})
    assert [(i.category, i.kind) for i in insights] == [(R, "under"), (T, "over")]
    assert insights[0].message == "You have room for more Research time (-10.0%)"
    assert insights[1].message == "Teaching is taking more time than allocated (+10.0%)"


def test_insight_threshold_is_inclusive():
    insights = allocation_insights({R: 5.0, T: -5.0, S: 0.0})
    assert [i.kind for i in insights] == ["over", "under"]


def test_balanced_insight_when_all_small():
    insights = allocation_insights({R: 4.9, T: -4.9, S: 0.0})
    assert len(insights) == 1
    assert insights[0].kind == "balanced"
    assert insights[0].category is None


@pytest.mark.parametrize(
    "delta, band",
    [(0.0, "neutral"), (2.9, "neutral"), (-2.9, "neutral"), (3.0, "over"), (-3.0, "under"), (4.0, "over")],
)
def test_delta_band(delta, band):
    assert delta_band(delta) == band


def test_over_under_includes_carryover():
    assert over_under(80, 2, 37.5, 2) == pytest.approx(7)
    assert over_under(70, 2, 37.5, 0) == pytest.approx(-5)
    assert over_under_label(0) == "Overworked"
    assert over_under_label(-0.5) == "Underworked"


def test_allocation_warning():
    assert allocation_warning(AllocationConfig()) is None
    cfg = AllocationConfig.from_dict({"Research": 50, "Teaching": 40, "Service": 20})
    assert allocation_warning(cfg) == "Allocations should total 100% (currently 110%)"


def test_analyze_sample(session):
    stats = compute_stats(session.entries)
    report = analyze(stats, session.settings)
    assert report.actual_percentages[R] == pytest.approx(5.5 * 100 / 10.5)
    assert report.expected_hours == 75
    assert report.over_under == pytest.approx(18 - 75 + 2)
    assert report.over_under_label == "Underworked"
    assert report.allocation_warning is None
    assert set(report.to_dict()) >= {"actualPercentages", "allocationDiff", "insights", "overUnder"}


def test_analyze_empty_ledger():
    report = analyze(compute_stats({}), Settings())
    assert report.actual_percentages == {R: 0.0, T: 0.0, S: 0.0}
    assert report.deltas == {R: 0.0, T: 0.0, S: 0.0}
    assert report.bands == {R: "neutral", T: "neutral", S: "neutral"}
    assert [i.kind for i in report.insights] == ["balanced"]
    assert report.over_under == 0
    assert report.over_under_label == "Overworked"


def test_category_breakdown(session):
    rows = category_breakdown(compute_stats(session.entries))
    assert [r["name"] for r in rows] == ["Research", "Teaching", "Service"]
    assert rows[0] == {"name": "Research", "value": 5.5, "percentage": 52.4}


def test_weekly_distribution(session):
    rows = weekly_distribution(compute_stats(session.entries), session.settings.allocation)
    assert rows[0]["week"] == "2025-03-10"
    assert rows[0]["ResearchPct"] == pytest.approx(4 * 100 / 9)
    assert rows[0]["AllocResearch"] == 40
    assert rows[1]["ResearchPct"] == pytest.approx(100)
    assert rows[1]["TeachingPct"] == 0


def test_deltas_require_working_total():
    with pytest.raises(TypeError):
        allocation_deltas({R: 0.0, T: 0.0, S: 0.0}, AllocationConfig())
