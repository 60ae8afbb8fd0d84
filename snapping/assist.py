# ============================================================================
# ASSIST LINES
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Snapping - Geometry-relative snapping targets
# PURPOSE: Fixed lines, reference frames and picked-geometry projection
# CREATED: 19 OCT 2026
# ============================================================================
"""
Assist Lines

An assist line pulls a raw point onto a reference when it is within a
capture threshold. At most one target is active at a time.

Targets:
    FixedLineTarget       x = c or z = c, infinite, no bounds check
    ReferenceFrameTarget  one x line and one z line; only one axis snaps,
                          the nearer one, x on an exact tie
    PickedGeometryTarget  nearest point on the segments of a rendered
                          polyline/polygon; polygon rings also test the
                          closing segment
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from core.contracts import DrawMode, GridSnapMode
from core.models.geometry import WorldPoint
from core.models.record import Record
from snapping.grid import format_grid_number, snap_number

DEFAULT_THRESHOLD = 20.0

# Segments whose squared length is below this are treated as a single point
DEGENERATE_SEGMENT = 1e-12


@dataclass(frozen=True)
class SnapResult:
    """
    Outcome of snapping one point.

    ``distance`` is the distance to the assist target (None when no target
    was consulted); ``target_label`` names the target that was consulted.
    """
    point: WorldPoint
    snapped: bool = False
    distance: Optional[float] = None
    target_label: Optional[str] = None

    @classmethod
    def unchanged(cls, p: WorldPoint) -> "SnapResult":
        return cls(point=p)


def round_half(n: float) -> float:
    """Round a user-typed target value or threshold to the 0.5 grid."""
    return snap_number(n, GridSnapMode.AUTO)


# ============================================================================
# TARGETS
# ============================================================================

class AssistTarget(ABC):
    """Base class for assist targets."""

    @property
    @abstractmethod
    def label(self) -> str:
        ...

    @abstractmethod
    def transform(self, p: WorldPoint, threshold: float) -> SnapResult:
        """Snap ``p`` onto this target when within ``threshold``."""


@dataclass(frozen=True)
class FixedLineTarget(AssistTarget):
    axis: str
    value: float

    def __post_init__(self):
        if self.axis not in ("x", "z"):
            raise ValueError(f"axis must be 'x' or 'z', got '{self.axis}'")

    @classmethod
    def from_input(cls, axis: str, value: float) -> "FixedLineTarget":
        return cls(axis=axis, value=round_half(value))

    @property
    def label(self) -> str:
        return f"fixed line {self.axis} = {format_grid_number(self.value)}"

    def transform(self, p: WorldPoint, threshold: float) -> SnapResult:
        coord = p.x if self.axis == "x" else p.z
        d = abs(coord - self.value)
        if d <= threshold:
            if self.axis == "x":
                snapped = p.with_xz(self.value, p.z)
            else:
                snapped = p.with_xz(p.x, self.value)
            return SnapResult(point=snapped, snapped=True, distance=d, target_label=self.label)
        return SnapResult(point=p, snapped=False, distance=d, target_label=self.label)


@dataclass(frozen=True)
class ReferenceFrameTarget(AssistTarget):
    x_ref: float
    z_ref: float

    @classmethod
    def from_input(cls, x_ref: float, z_ref: float) -> "ReferenceFrameTarget":
        return cls(x_ref=round_half(x_ref), z_ref=round_half(z_ref))

    @property
    def label(self) -> str:
        return (
            f"reference frame x = {format_grid_number(self.x_ref)}, "
            f"z = {format_grid_number(self.z_ref)}"
        )

    def transform(self, p: WorldPoint, threshold: float) -> SnapResult:
        dx = abs(p.x - self.x_ref)
        dz = abs(p.z - self.z_ref)
        x_ok = dx <= threshold
        z_ok = dz <= threshold

        if not x_ok and not z_ok:
            return SnapResult(point=p, snapped=False, distance=min(dx, dz), target_label=self.label)

        # Tie goes to x
        if x_ok and (not z_ok or dx <= dz):
            return SnapResult(
                point=p.with_xz(self.x_ref, p.z),
                snapped=True,
                distance=dx,
                target_label=f"{self.label} (x)",
            )
        return SnapResult(
            point=p.with_xz(p.x, self.z_ref),
            snapped=True,
            distance=dz,
            target_label=f"{self.label} (z)",
        )


def _project(p: WorldPoint, a: WorldPoint, b: WorldPoint) -> Tuple[float, float, float, float]:
    """``(qx, qz, t, distance)`` of the projection of ``p`` onto ``ab``."""
    abx = b.x - a.x
    abz = b.z - a.z
    denom = abx * abx + abz * abz

    if not math.isfinite(denom) or denom <= DEGENERATE_SEGMENT:
        return a.x, a.z, 0.0, math.hypot(p.x - a.x, p.z - a.z)

    t = ((p.x - a.x) * abx + (p.z - a.z) * abz) / denom
    t = min(1.0, max(0.0, t))
    qx = a.x + abx * t
    qz = a.z + abz * t
    return qx, qz, t, math.hypot(p.x - qx, p.z - qz)


def closest_point_on_segment(
    p: WorldPoint, a: WorldPoint, b: WorldPoint
) -> Tuple[Tuple[float, float], float]:
    """
    Nearest point to ``p`` on segment ``ab`` in the x/z plane.

    Returns ``((x, z), distance)``. A zero-length segment falls back to
    endpoint ``a``.
    """
    qx, qz, _, d = _project(p, a, b)
    return (qx, qz), d


def closest_point_on_rings(
    p: WorldPoint,
    rings: Sequence[Sequence[WorldPoint]],
    closed: Sequence[bool],
) -> Tuple[Optional[Tuple[float, float]], float]:
    """Nearest point over every segment of every ring; ``(None, inf)`` if none."""
    best: Optional[Tuple[float, float]] = None
    best_d = math.inf

    for ring, is_closed in zip(rings, closed):
        n = len(ring)
        if n < 2:
            continue
        last = n if is_closed else n - 1
        for i in range(last):
            q, d = closest_point_on_segment(p, ring[i], ring[(i + 1) % n])
            if d < best_d:
                best, best_d = q, d

    return best, best_d


@dataclass(frozen=True)
class SegmentHit:
    """
    Nearest segment of a single ring.

    ``index`` is the segment start; the segment ends at ``index + 1``
    (wrapping to 0 on the closing segment of a closed ring). ``t`` is the
    position along the segment in [0, 1].
    """
    index: int
    t: float
    point: Tuple[float, float]
    distance: float


def nearest_segment(
    p: WorldPoint, ring: Sequence[WorldPoint], closed: bool
) -> Optional[SegmentHit]:
    """Nearest segment of ``ring`` to ``p``; None for fewer than two points."""
    n = len(ring)
    if n < 2:
        return None
    best: Optional[SegmentHit] = None
    last = n if closed else n - 1
    for i in range(last):
        qx, qz, t, d = _project(p, ring[i], ring[(i + 1) % n])
        if best is None or d < best.distance:
            best = SegmentHit(index=i, t=t, point=(qx, qz), distance=d)
    return best


@dataclass(frozen=True)
class PickedGeometryTarget(AssistTarget):
    rings: Tuple[Tuple[WorldPoint, ...], ...]
    closed: Tuple[bool, ...]
    name: str = "picked feature"

    @classmethod
    def from_record(cls, record: Record) -> "PickedGeometryTarget":
        """Build from a committed polyline or polygon record."""
        if record.mode not in (DrawMode.POLYLINE, DrawMode.POLYGON):
            raise ValueError(f"Record {record.id} is not a line or polygon ({record.mode.value})")
        return cls(
            rings=(tuple(record.coords),),
            closed=(record.mode == DrawMode.POLYGON,),
            name=record.title(),
        )

    @classmethod
    def from_rings(
        cls,
        rings: Sequence[Sequence[WorldPoint]],
        closed: bool,
        name: str = "picked feature",
    ) -> "PickedGeometryTarget":
        return cls(
            rings=tuple(tuple(r) for r in rings),
            closed=tuple(closed for _ in rings),
            name=name,
        )

    @property
    def label(self) -> str:
        return self.name

    def transform(self, p: WorldPoint, threshold: float) -> SnapResult:
        q, d = closest_point_on_rings(p, self.rings, self.closed)
        distance = d if math.isfinite(d) else None
        if q is not None and distance is not None and distance <= threshold:
            return SnapResult(
                point=p.with_xz(q[0], q[1]),
                snapped=True,
                distance=distance,
                target_label=self.label,
            )
        return SnapResult(point=p, snapped=False, distance=distance, target_label=self.label)


# ============================================================================
# ASSIST LINE
# ============================================================================

@dataclass
class AssistLine:
    """Active assist target plus its capture threshold."""
    target: Optional[AssistTarget] = None
    threshold: float = DEFAULT_THRESHOLD
    enabled: bool = True

    def set_threshold(self, value: float) -> None:
        """Apply a user-typed threshold (rounded to the 0.5 grid, >= 0)."""
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"threshold must be a finite number >= 0, got {value}")
        self.threshold = round_half(value)

    def clear(self) -> None:
        self.target = None

    def transform(self, p: WorldPoint) -> SnapResult:
        if not self.enabled or self.target is None:
            return SnapResult.unchanged(p)
        return self.target.transform(p, self.threshold)


__all__ = [
    "DEFAULT_THRESHOLD",
    "SnapResult",
    "AssistTarget",
    "FixedLineTarget",
    "ReferenceFrameTarget",
    "PickedGeometryTarget",
    "AssistLine",
    "closest_point_on_segment",
    "closest_point_on_rings",
    "SegmentHit",
    "nearest_segment",
    "round_half",
]
