"""
Tests for the unified step level calculator.

Covers percentage thresholds, manual overrides, overall proficiency
averaging and the display lookups.
"""
from types import SimpleNamespace

import pytest

from conftest import behavior_ids, make_step
from salescoach.utils.step_levels import (
    DEFAULT_BADGE_CLASS,
    NOT_EVALUATED,
    SOURCE_CALCULATED,
    SOURCE_MANUAL,
    UnifiedStepLevel,
    calculate_level_from_behaviors,
    checked_behavior_ids,
    get_level_badge_class,
    get_level_short_code,
    get_level_text,
    get_overall_proficiency,
    get_unified_step_levels,
    manual_step_levels,
)


def calculated(step_id: int, level: int) -> UnifiedStepLevel:
    return UnifiedStepLevel(step_id=step_id, level=level, source=SOURCE_CALCULATED, percentage=0)


# ── calculate_level_from_behaviors ─────────────────────────────────────────────
class TestCalculateLevelFromBehaviors:
    @pytest.mark.parametrize("checked, total, expected", [
        (9, 10, 4),
        (10, 10, 4),
        (7, 10, 3),
        (89, 100, 3),
        (5, 10, 2),
        (69, 100, 2),
        (49, 100, 1),
        (0, 10, 1),
    ])
    def test_thresholds(self, checked, total, expected):
        assert calculate_level_from_behaviors(checked, total) == expected

    def test_boundaries_are_inclusive(self):
        assert calculate_level_from_behaviors(90, 100) == 4
        assert calculate_level_from_behaviors(70, 100) == 3
        assert calculate_level_from_behaviors(50, 100) == 2

    def test_just_below_half_is_learner(self):
        # 49.999%
        assert calculate_level_from_behaviors(49999, 100000) == 1

    def test_seventy_percent_of_odd_total(self):
        # 7/10 and 14/20 must not drift below 70 through float division
        assert calculate_level_from_behaviors(14, 20) == 3
        assert calculate_level_from_behaviors(21, 30) == 3

    def test_zero_total_is_learner(self):
        assert calculate_level_from_behaviors(0, 0) == 1


# ── get_unified_step_levels ────────────────────────────────────────────────────
class TestGetUnifiedStepLevels:
    def test_calculated_level_from_checked_behaviors(self):
        step = make_step(1, 10)
        checked = behavior_ids(step)[:7]
        [result] = get_unified_step_levels([step], checked, {})
        assert result.level == 3
        assert result.source == SOURCE_CALCULATED
        assert result.percentage == 70

    def test_manual_level_wins(self):
        step = make_step(1, 10)
        checked = behavior_ids(step)[:9]
        [result] = get_unified_step_levels([step], checked, {1: 2})
        assert result == UnifiedStepLevel(step_id=1, level=2, source=SOURCE_MANUAL)
        assert result.percentage is None

    def test_manual_level_only_affects_its_step(self):
        steps = [make_step(1, 4), make_step(2, 4)]
        checked = behavior_ids(steps[1])
        levels = get_unified_step_levels(steps, checked, {1: 4})
        assert [level.source for level in levels] == [SOURCE_MANUAL, SOURCE_CALCULATED]
        assert levels[1].level == 4
        assert levels[1].percentage == 100

    def test_behaviors_counted_across_substeps(self):
        step = make_step(1, 2)
        step.substeps.append(SimpleNamespace(behaviors=[SimpleNamespace(id=900), SimpleNamespace(id=901)]))
        [result] = get_unified_step_levels([step], {900, 901}, {})
        assert result.percentage == 50
        assert result.level == 2

    def test_percentage_rounds_half_up(self):
        step = make_step(1, 8)
        # 1/8 = 12.5%
        [result] = get_unified_step_levels([step], behavior_ids(step)[:1], {})
        assert result.percentage == 13

    def test_unknown_checked_ids_are_ignored(self):
        step = make_step(1, 4)
        [result] = get_unified_step_levels([step], {12345}, {})
        assert result.percentage == 0
        assert result.level == 1

    def test_step_without_behaviors(self):
        step = SimpleNamespace(id=1, substeps=[])
        [result] = get_unified_step_levels([step], set(), {})
        assert result.level == 1
        assert result.percentage == 0
        assert result.source == SOURCE_CALCULATED

    def test_preserves_step_order(self):
        steps = [make_step(3, 2), make_step(1, 2), make_step(2, 2)]
        assert [level.step_id for level in get_unified_step_levels(steps, set())] == [3, 1, 2]

    def test_identical_inputs_identical_outputs(self):
        steps = [make_step(1, 10), make_step(2, 5)]
        checked = set(behavior_ids(steps[0])[:6])
        first = get_unified_step_levels(steps, checked, {2: 3})
        second = get_unified_step_levels(steps, checked, {2: 3})
        assert first == second


# ── get_overall_proficiency ────────────────────────────────────────────────────
class TestGetOverallProficiency:
    @pytest.mark.parametrize("levels, expected_level, expected_text", [
        ([4, 3], 4, "Master"),
        ([3, 2], 3, "Experienced"),
        ([2, 1], 2, "Qualified"),
        ([1, 1, 2], 1, "Learner"),
        ([4, 4, 4], 4, "Master"),
    ])
    def test_average_thresholds(self, levels, expected_level, expected_text):
        result = get_overall_proficiency([calculated(i, level) for i, level in enumerate(levels)])
        assert result.level == expected_level
        assert result.text == expected_text

    def test_average_value(self):
        result = get_overall_proficiency([calculated(1, 4), calculated(2, 1)])
        assert result.average == pytest.approx(2.5)

    def test_manual_and_calculated_weighted_equally(self):
        levels = [UnifiedStepLevel(1, 4, SOURCE_MANUAL), calculated(2, 2)]
        assert get_overall_proficiency(levels).level == 3

    def test_no_steps_not_evaluated(self):
        result = get_overall_proficiency([])
        assert result.level == 1
        assert result.text == NOT_EVALUATED
        assert result.average == 0

    def test_empty_step_counts_toward_average(self):
        steps = [make_step(1, 10), SimpleNamespace(id=2, substeps=[])]
        levels = get_unified_step_levels(steps, behavior_ids(steps[0]))
        result = get_overall_proficiency(levels)
        assert result.average == pytest.approx(2.5)
        assert result.level == 3


# ── input adapters and display lookups ─────────────────────────────────────────
class TestAdaptersAndLookups:
    def test_checked_behavior_ids_skips_unchecked(self):
        scores = [
            SimpleNamespace(behavior_id=1, checked=True),
            SimpleNamespace(behavior_id=2, checked=False),
            SimpleNamespace(behavior_id=3, checked=True),
        ]
        assert checked_behavior_ids(scores) == {1, 3}

    def test_manual_step_levels(self):
        scores = [SimpleNamespace(step_id=5, level=2), SimpleNamespace(step_id=7, level=4)]
        assert manual_step_levels(scores) == {5: 2, 7: 4}

    def test_level_text(self):
        assert [get_level_text(level) for level in (1, 2, 3, 4)] == ["Learner", "Qualified", "Experienced", "Master"]
        assert get_level_text(0) == NOT_EVALUATED
        assert get_level_text(None) == NOT_EVALUATED

    def test_short_codes(self):
        assert [get_level_short_code(level) for level in (1, 2, 3, 4)] == ["L", "Q", "E", "M"]
        assert get_level_short_code(5) == "-"

    def test_badge_class_fallback(self):
        assert "purple" in get_level_badge_class(4)
        assert get_level_badge_class(None) == DEFAULT_BADGE_CLASS
