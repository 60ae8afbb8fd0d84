# ============================================================================
# SNAPPING MODULE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Snapping - Package exports
# PURPOSE: Coordinate snapping engine (grid, assist lines, export rounding)
# CREATED: 19 OCT 2026
# ============================================================================

from snapping.grid import (
    GridSnapSettings,
    format_grid_number,
    parse_coord_list,
    parse_half_step_number,
    parse_step_number,
    round_payload_coordinates,
    round_to_step,
    snap_number,
    snap_world_point,
)
from snapping.assist import (
    AssistLine,
    AssistTarget,
    FixedLineTarget,
    PickedGeometryTarget,
    ReferenceFrameTarget,
    SegmentHit,
    SnapResult,
    nearest_segment,
)
from snapping.engine import SnapContext, snap

__all__ = [
    # Grid
    "GridSnapSettings",
    "format_grid_number",
    "parse_coord_list",
    "parse_half_step_number",
    "parse_step_number",
    "round_payload_coordinates",
    "round_to_step",
    "snap_number",
    "snap_world_point",
    # Assist
    "AssistLine",
    "AssistTarget",
    "FixedLineTarget",
    "PickedGeometryTarget",
    "ReferenceFrameTarget",
    "SegmentHit",
    "SnapResult",
    "nearest_segment",
    # Engine
    "SnapContext",
    "snap",
]
