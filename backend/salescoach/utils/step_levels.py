from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Set

# Proficiency levels
LEVEL_NAMES = {
    1: "Learner",
    2: "Qualified",
    3: "Experienced",
    4: "Master",
}

LEVEL_SHORT_CODES = {1: "L", 2: "Q", 3: "E", 4: "M"}

LEVEL_BADGE_CLASSES = {
    4: "bg-purple-100 text-purple-800 border-purple-300",
    3: "bg-green-100 text-green-800 border-green-300",
    2: "bg-blue-100 text-blue-800 border-blue-300",
    1: "bg-orange-100 text-orange-800 border-orange-300",
}

NOT_EVALUATED = "Not Evaluated"
DEFAULT_BADGE_CLASS = "bg-gray-100 text-gray-800 border-gray-300"

# Minimum share of checked behaviors (percent) for each calculated level, highest first
PERCENTAGE_THRESHOLDS = [(90, 4), (70, 3), (50, 2)]

# Minimum average step level for each overall level, highest first
AVERAGE_THRESHOLDS = [(3.5, 4), (2.5, 3), (1.5, 2)]

SOURCE_MANUAL = "manual"
SOURCE_CALCULATED = "calculated"


@dataclass(frozen=True)
class UnifiedStepLevel:
    step_id: int
    level: int
    source: str
    percentage: Optional[int] = None


@dataclass(frozen=True)
class OverallProficiency:
    level: int
    text: str
    average: float


def calculate_level_from_behaviors(checked_count: int, total_count: int) -> int:
    """
    Map a step's checked-behavior ratio to a proficiency level.

    Args:
        checked_count: Number of the step's behaviors the coach observed
        total_count: Number of behaviors under the step (all substeps)

    Returns:
        Level 1-4. Thresholds are inclusive lower bounds on the percentage.
    """
    if total_count <= 0:
        return 1

    # Compare in integers so exact boundaries (e.g. 7/10 == 70%) never drift
    for threshold, level in PERCENTAGE_THRESHOLDS:
        if checked_count * 100 >= threshold * total_count:
            return level
    return 1


def _round_percentage(checked_count: int, total_count: int) -> int:
    if total_count <= 0:
        return 0
    percentage = Decimal(checked_count * 100) / Decimal(total_count)
    return int(percentage.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def checked_behavior_ids(assessment_scores: Iterable) -> Set[int]:
    """Collect the behavior ids of score rows marked as checked."""
    return {score.behavior_id for score in assessment_scores if score.checked}


def manual_step_levels(step_scores: Iterable) -> Dict[int, int]:
    """Index manual step scores by step id."""
    return {score.step_id: score.level for score in step_scores}


def get_unified_step_levels(steps: Iterable, checked_ids: Iterable[int],
                            manual_levels: Optional[Dict[int, int]] = None) -> List[UnifiedStepLevel]:
    """
    Resolve the authoritative level of every step for one assessment.

    A manual step score always wins. Otherwise the level is derived from the
    share of the step's behaviors (across all its substeps) that were checked.

    Args:
        steps: Ordered steps, each exposing ``id`` and ``substeps``; substeps expose ``behaviors``
        checked_ids: Behavior ids marked as observed
        manual_levels: Mapping of step id to coach-entered level

    Returns:
        One UnifiedStepLevel per step, in input order
    """
    checked = set(checked_ids)
    manual_levels = manual_levels or {}

    unified = []
    for step in steps:
        manual_level = manual_levels.get(step.id)
        if manual_level:
            unified.append(UnifiedStepLevel(step_id=step.id, level=manual_level, source=SOURCE_MANUAL))
            continue

        behavior_ids = [behavior.id for substep in step.substeps for behavior in substep.behaviors]
        checked_count = sum(1 for behavior_id in behavior_ids if behavior_id in checked)
        total_count = len(behavior_ids)

        unified.append(UnifiedStepLevel(
            step_id=step.id,
            level=calculate_level_from_behaviors(checked_count, total_count),
            source=SOURCE_CALCULATED,
            percentage=_round_percentage(checked_count, total_count),
        ))

    return unified


def get_overall_proficiency(unified_levels: List[UnifiedStepLevel]) -> OverallProficiency:
    """
    Average the step levels into an overall proficiency label.

    Manual and calculated levels are weighted equally. With no steps at all
    the result is "Not Evaluated" at level 1.
    """
    if not unified_levels:
        return OverallProficiency(level=1, text=NOT_EVALUATED, average=0.0)

    average = sum(step.level for step in unified_levels) / len(unified_levels)

    level = 1
    for threshold, candidate in AVERAGE_THRESHOLDS:
        if average >= threshold:
            level = candidate
            break

    return OverallProficiency(level=level, text=LEVEL_NAMES[level], average=average)


def get_level_text(level: Optional[int]) -> str:
    return LEVEL_NAMES.get(level, NOT_EVALUATED)


def get_level_short_code(level: Optional[int]) -> str:
    return LEVEL_SHORT_CODES.get(level, "-")


def get_level_badge_class(level: Optional[int]) -> str:
    return LEVEL_BADGE_CLASSES.get(level, DEFAULT_BADGE_CLASS)
