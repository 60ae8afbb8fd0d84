# ============================================================================
# SNAPPING ENGINE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Snapping - Pipeline entry point
# PURPOSE: Apply assist line then grid to every new pointer point
# CREATED: 19 OCT 2026
# ============================================================================
"""
Snapping Engine

    snap(raw, context) -> SnapResult

Order is fixed: assist line first, then grid. The ``snapped``,
``distance`` and ``target_label`` fields of the result describe the
assist step; grid quantization only changes ``point``.

Manual numeric entry does not go through here (see
``DraftSession.add_manual_point``).
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from core.logging import ComponentType, get_logger
from core.models.geometry import WorldPoint
from snapping.assist import AssistLine, SnapResult
from snapping.grid import GridSnapSettings

logger = get_logger(__name__, ComponentType.SNAPPING)


@dataclass
class SnapContext:
    """Snapping configuration handed to the draft session."""
    grid: Optional[GridSnapSettings] = None
    assist: AssistLine = field(default_factory=AssistLine)


def snap(raw: WorldPoint, context: Optional[SnapContext] = None) -> SnapResult:
    """Turn a raw pointer point into the point that gets accumulated."""
    if context is None:
        return SnapResult.unchanged(raw)

    result = context.assist.transform(raw)
    if context.grid is not None:
        result = replace(result, point=context.grid.apply(result.point))

    if result.snapped:
        logger.debug(
            f"Snapped ({raw.x}, {raw.z}) -> ({result.point.x}, {result.point.z})",
            extra={"target": result.target_label, "distance": result.distance},
        )
    return result


__all__ = ["SnapContext", "snap"]
