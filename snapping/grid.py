# ============================================================================
# GRID SNAPPING & STEP ROUNDING
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Snapping - Pure numeric helpers
# PURPOSE: Grid quantization, export rounding, manual-entry step checks
# CREATED: 19 OCT 2026
# ============================================================================
"""
Grid Snapping & Step Rounding

Two unrelated kinds of quantization live here:

Interactive grid snapping (pointer input):
    auto   -> nearest 0.5
    edge   -> nearest integer
    center -> nearest k + 0.5
  Rounding is symmetric (half away from zero, sign preserved) so that the
  same distance from the origin snaps the same way on both sides. ``-0``
  is normalized to ``0``. Every mode is idempotent.

Export rounding (payload output):
    round_to_step(-622.8000000000001, 0.1) == -622.8
  Round-half-up on the step with a small epsilon to absorb float noise,
  then representation cleanup to the step's decimal count.

GridSnapSettings is the explicit, passed-down owner of the current grid
mode. Interested parties subscribe and unsubscribe themselves.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from core.contracts import GridSnapMode
from core.logging import ComponentType, get_logger
from core.models.geometry import WorldPoint, is_numeric

logger = get_logger(__name__, ComponentType.SNAPPING)

EPSILON = 1e-9
MANUAL_COORD_STEP = 0.1


# ============================================================================
# NUMERIC HELPERS
# ============================================================================

def fix_negative_zero(n: float) -> float:
    """Normalize ``-0.0`` to ``0.0``."""
    return 0.0 if n == 0 else n


def step_to_decimals(step: float) -> int:
    """Number of decimals needed to represent multiples of ``step``."""
    try:
        exponent = Decimal(repr(float(step))).normalize().as_tuple().exponent
    except InvalidOperation:
        return 0
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def round_to_step(n: float, step: float = 0.1) -> float:
    """
    Quantize ``n`` to a multiple of ``step``, half up.

    Non-finite input or a non-positive step returns ``n`` unchanged.
    """
    if not is_numeric(n) or not math.isfinite(n):
        return n
    if not is_numeric(step) or step <= 0 or not math.isfinite(step):
        return n
    k = math.floor((n + EPSILON) / step + 0.5)
    return fix_negative_zero(round(k * step, step_to_decimals(step)))


def _symmetric(n: float, quantize: Callable[[float], float]) -> float:
    sign = -1.0 if n < 0 else 1.0
    return fix_negative_zero(sign * quantize(abs(n)))


def snap_number(n: float, mode: GridSnapMode) -> float:
    """Snap one coordinate according to ``mode``."""
    if not math.isfinite(n):
        return n
    if mode == GridSnapMode.EDGE:
        return _symmetric(n, lambda a: float(math.floor(a + 0.5 + EPSILON)))
    if mode == GridSnapMode.CENTER:
        return _symmetric(n, lambda a: math.floor(a) + 0.5)
    return _symmetric(n, lambda a: math.floor(a * 2 + 0.5 + EPSILON) / 2)


def snap_world_point(p: WorldPoint, mode: GridSnapMode) -> WorldPoint:
    """Snap x and z; elevation is carried through untouched."""
    return p.with_xz(snap_number(p.x, mode), snap_number(p.z, mode))


# ============================================================================
# MANUAL ENTRY
# ============================================================================

def parse_step_number(raw: Any, step: float = MANUAL_COORD_STEP) -> Optional[float]:
    """
    Parse a manually typed coordinate.

    Returns the value rounded to ``step`` when it is a finite multiple of
    ``step``; returns None for blank, junk or off-step input.
    """
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        n = float(text)
    except ValueError:
        return None
    if not math.isfinite(n):
        return None
    q = n / step
    if abs(q - round(q)) > 1e-6:
        return None
    return round_to_step(n, step)


def parse_half_step_number(raw: Any) -> Optional[float]:
    """Parse a value that must sit on the 0.5 grid."""
    return parse_step_number(raw, 0.5)


def parse_coord_list(text: Any) -> Optional[List[WorldPoint]]:
    """
    Parse a typed coordinate list.

    Points are separated by ``;``; each point is ``x,z`` or ``x,y,z``.
    Blank parts are skipped. Returns None when nothing is given or when
    any part is malformed, so a bad list never yields a partial result.

        parse_coord_list("0,0; 10,64,5")
        -> [WorldPoint(x=0, z=0), WorldPoint(x=10, y=64, z=5)]
    """
    parts = [s.strip() for s in str(text or "").split(";")]
    parts = [s for s in parts if s]
    if not parts:
        return None

    out: List[WorldPoint] = []
    for part in parts:
        nums = [s.strip() for s in part.split(",")]
        nums = [s for s in nums if s]
        if len(nums) not in (2, 3):
            return None
        try:
            values = [float(s) for s in nums]
        except ValueError:
            return None
        if not all(math.isfinite(v) for v in values):
            return None
        if len(values) == 2:
            out.append(WorldPoint(x=values[0], z=values[1]))
        else:
            out.append(WorldPoint(x=values[0], y=values[1], z=values[2]))
    return out


def format_grid_number(n: float) -> str:
    """``2`` for integral values, shortest decimal form otherwise."""
    if not math.isfinite(n):
        return str(n)
    n = fix_negative_zero(n)
    if float(n).is_integer():
        return str(int(n))
    return f"{n:.6f}".rstrip("0").rstrip(".")


# ============================================================================
# PAYLOAD ROUNDING
# ============================================================================

def _is_xz_object(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and is_numeric(value.get("x"))
        and is_numeric(value.get("z"))
    )


def _is_triple(value: Any) -> bool:
    return isinstance(value, list) and len(value) == 3 and all(is_numeric(v) for v in value)


def _clean_number(n: float) -> Any:
    if isinstance(n, float) and n.is_integer():
        return int(n)
    return n


def round_payload_coordinates(value: Any, step: float = 0.1) -> Any:
    """
    Return a copy of ``value`` with every coordinate rounded to ``step``.

    Coordinates are any ``{x, z[, y]}`` object or numeric ``[x, y, z]``
    triple, at any depth. Everything else is copied as is.
    """
    if _is_triple(value):
        return [_clean_number(round_to_step(v, step)) for v in value]
    if isinstance(value, list):
        return [round_payload_coordinates(v, step) for v in value]
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        coord_object = _is_xz_object(value)
        for key, v in value.items():
            if coord_object and key in ("x", "y", "z") and is_numeric(v):
                out[key] = _clean_number(round_to_step(v, step))
            else:
                out[key] = round_payload_coordinates(v, step)
        return out
    return value


# ============================================================================
# SETTINGS (OBSERVABLE)
# ============================================================================

GridModeListener = Callable[[GridSnapMode], None]


class GridSnapSettings:
    """
    Grid snapping configuration owned by the editor host.

    Passed down explicitly to whoever needs it. Listeners are notified
    only when the mode actually changes.
    """

    def __init__(self, mode: GridSnapMode = GridSnapMode.AUTO, enabled: bool = True):
        self._mode = GridSnapMode(mode)
        self.enabled = enabled
        self._listeners: List[GridModeListener] = []

    @property
    def mode(self) -> GridSnapMode:
        return self._mode

    def set_mode(self, mode: GridSnapMode) -> bool:
        """Change the mode; returns True when listeners were notified."""
        mode = GridSnapMode(mode)
        if mode == self._mode:
            return False
        self._mode = mode
        logger.debug(f"Grid snap mode -> {mode.value}")
        for listener in list(self._listeners):
            listener(mode)
        return True

    def subscribe(self, listener: GridModeListener) -> Callable[[], None]:
        """Register a listener; the returned callable unsubscribes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: GridModeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def apply(self, p: WorldPoint) -> WorldPoint:
        """Snap ``p`` with the current mode, or return it when disabled."""
        if not self.enabled:
            return p
        return snap_world_point(p, self._mode)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "EPSILON",
    "MANUAL_COORD_STEP",
    "fix_negative_zero",
    "step_to_decimals",
    "round_to_step",
    "snap_number",
    "snap_world_point",
    "parse_step_number",
    "parse_half_step_number",
    "parse_coord_list",
    "format_grid_number",
    "round_payload_coordinates",
    "GridModeListener",
    "GridSnapSettings",
]
