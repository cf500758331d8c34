"""
Point-based proficiency for a single substep.

Each checked behavior contributes its proficiency level (1-4) as points. A
substep advances a level once its points exceed everything the lower levels
could contribute on their own.
"""

from typing import Dict, Iterable, Set

NOT_ASSESSED = "Not Assessed"

SUBSTEP_BADGE_CLASSES = {
    "Master": "bg-purple-100 text-purple-700",
    "Experienced": "bg-blue-100 text-blue-700",
    "Qualified": "bg-green-100 text-green-700",
    "Learner": "bg-orange-100 text-orange-700",
    NOT_ASSESSED: "bg-gray-100 text-gray-700",
}


def calculate_substep_score(substep, checked_ids: Set[int]) -> int:
    """Sum the proficiency levels of the substep's checked behaviors."""
    return sum(behavior.proficiency_level for behavior in substep.behaviors if behavior.id in checked_ids)


def calculate_step_points(step, checked_ids: Set[int]) -> int:
    return sum(calculate_substep_score(substep, checked_ids) for substep in step.substeps)


def _level_counts(behaviors: Iterable) -> Dict[int, int]:
    counts = {1: 0, 2: 0, 3: 0, 4: 0}
    for behavior in behaviors:
        if behavior.proficiency_level in counts:
            counts[behavior.proficiency_level] += 1
    return counts


def calculate_substep_proficiency(substep, checked_ids: Set[int]) -> Dict:
    """
    Label a substep by its point score.

    Args:
        substep: Object exposing ``behaviors`` (each with ``id`` and ``proficiency_level``)
        checked_ids: Behavior ids marked as observed

    Returns:
        Dictionary with ``score``, ``level`` text and badge ``class_name``
    """
    score = calculate_substep_score(substep, checked_ids)
    if score == 0:
        return {"score": 0, "level": NOT_ASSESSED, "class_name": SUBSTEP_BADGE_CLASSES[NOT_ASSESSED]}

    counts = _level_counts(substep.behaviors)
    learner_max = counts[1] * 1
    experienced_threshold = learner_max + counts[2] * 2
    master_threshold = experienced_threshold + counts[3] * 3

    if score > master_threshold:
        level = "Master"
    elif score > experienced_threshold:
        level = "Experienced"
    elif score > learner_max:
        level = "Qualified"
    else:
        level = "Learner"

    return {"score": score, "level": level, "class_name": SUBSTEP_BADGE_CLASSES[level]}
