import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence, Set, Tuple

from salescoach.utils.substep_scoring import calculate_step_points

# Every behavior performed at Experienced level is the target profile
TARGET_LEVEL = 3


def spider_graph_data(steps, checked_ids: Set[int]) -> List[Dict]:
    """
    Build the points-vs-target series for the radar chart.

    Args:
        steps: Ordered steps with substeps and behaviors
        checked_ids: Behavior ids marked as observed

    Returns:
        One entry per step with actual and target points plus percentages
    """
    data = []
    for step in steps:
        actual = calculate_step_points(step, checked_ids)
        target = sum(len(substep.behaviors) * TARGET_LEVEL for substep in step.substeps)
        if target > 0:
            actual_percent = int((Decimal(actual * 100) / Decimal(target)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        else:
            actual_percent = 0

        data.append({
            "step_id": step.id,
            "step": step.title,
            "actual": actual,
            "target": target,
            "actual_percent": actual_percent,
            "target_percent": 100,
        })
    return data


def level_radar_series(steps, unified_levels) -> List[Dict]:
    """Pair each step title with its unified level and the Level 3 benchmark."""
    levels_by_step = {unified.step_id: unified.level for unified in unified_levels}
    return [
        {"step_id": step.id, "step": step.title, "level": levels_by_step.get(step.id, 1), "benchmark": TARGET_LEVEL}
        for step in steps
    ]


def radar_points(values: Sequence[float], max_value: float, cx: float, cy: float,
                 radius: float) -> List[Tuple[float, float]]:
    """
    Project values onto equally spaced radar axes.

    The first axis points straight up and axes proceed clockwise. Coordinates
    use a y-up plane (PDF drawing space). Values are clamped to [0, max_value].
    """
    count = len(values)
    if count == 0 or max_value <= 0:
        return []

    points = []
    for index, value in enumerate(values):
        share = min(max(value, 0), max_value) / max_value
        angle = math.pi / 2 - index * 2 * math.pi / count
        points.append((cx + math.cos(angle) * radius * share, cy + math.sin(angle) * radius * share))
    return points
