# ============================================================================
# DRAFT EDITING SESSION
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Service - In-progress geometry state machine
# PURPOSE: Point accumulation, undo/redo, create vs edit commit
# CREATED: 19 OCT 2026
# ============================================================================
"""
Draft Editing Session

States:
    idle                      nothing open
    drawing(mode)             accumulating a new feature
    editing(mode, target_id)  re-drawing / re-attributing a record

Transitions:
    idle -> drawing      select_mode(m)
    drawing -> idle      cancel(), or select_mode(m) with the current mode
    idle -> editing      begin_edit(id): record leaves the committed render
                         set, its coords become the draft AND the backup,
                         its payload is hydrated into form state
    drawing|editing -> idle   commit() success or cancel()

Invariants:
    - any change to the points other than undo/redo clears the redo
      stack: add_point, add_manual_point, load_coordinate_list,
      reverse_points, move_point and insert_point
    - backup_coords is set iff editing_target_id is set
    - cancel clears points, redo stack and backup together

Commit takes ``points`` when non-empty, otherwise the edit backup, so an
attribute-only edit never loses geometry. Rejected commits leave the
session open and return every issue at once.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.config import Defaults, get_defaults
from core.contracts import DrawMode, FeatureKey, Operation, SessionState
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models.geometry import WorldPoint
from core.models.validation import CommitResult, GeometryError, StructuralError, ValidationIssue
from schemas import (
    BuildContext,
    SchemaClass,
    UnknownWorldError,
    get_schema_or_raise,
    validate_required,
)
from services.layer_store import LayerEvent, LayerEventKind, LayerStore, NewRecord
from services.render_sync import RenderSync
from snapping.assist import SnapResult, nearest_segment
from snapping.engine import SnapContext, snap
from snapping.grid import parse_coord_list, parse_step_number

logger = get_logger(__name__, ComponentType.SESSION)

DEFAULT_COLOR = "#1e88e5"


class DraftSession:
    """Owner of the in-progress geometry and its form state."""

    def __init__(
        self,
        store: LayerStore,
        world_id: str,
        editor_id: str = "",
        snap_context: Optional[SnapContext] = None,
        render: Optional[RenderSync] = None,
        defaults: Optional[Defaults] = None,
    ):
        self.defaults = defaults or get_defaults()
        if self.defaults.worlds.code_for(world_id) is None:
            raise UnknownWorldError(world_id)

        self.store = store
        self.world_id = world_id
        self.editor_id = editor_id
        self.snap_context = snap_context or SnapContext()
        self.render = render
        self.session_id = uuid.uuid4().hex[:12]

        self.mode: DrawMode = DrawMode.NONE
        self.points: List[WorldPoint] = []
        self.redo_stack: List[WorldPoint] = []
        self.editing_target_id: Optional[int] = None
        self.backup_coords: Optional[List[WorldPoint]] = None

        self.class_key: FeatureKey = FeatureKey.DEFAULT
        self.form_values: Dict[str, Any] = {}
        self.form_groups: Dict[str, List[Dict[str, Any]]] = {}
        self.color: str = DEFAULT_COLOR

        self._unsubscribe = store.subscribe(self._on_store_event)

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if self.editing_target_id is not None:
            return SessionState.EDITING
        if self.mode.is_drawable():
            return SessionState.DRAWING
        return SessionState.IDLE

    @property
    def schema(self) -> SchemaClass:
        return get_schema_or_raise(self.class_key)

    def close(self) -> None:
        """Detach from the store."""
        self._unsubscribe()

    def _context(self, **extra):
        return log_context(
            session_id=self.session_id,
            record_id=self.editing_target_id,
            class_key=self.class_key.value,
            world_id=self.world_id,
            editor_id=self.editor_id or None,
            component=ComponentType.SESSION.value,
            **extra,
        )

    def _reset_form(self, key: FeatureKey = FeatureKey.DEFAULT) -> None:
        form = get_schema_or_raise(key).empty_form()
        self.class_key = key
        self.form_values = form.values
        self.form_groups = form.groups

    def _reset(self) -> None:
        """Back to idle. Points, redo stack and backup go together."""
        self.mode = DrawMode.NONE
        self.points = []
        self.redo_stack = []
        self.editing_target_id = None
        self.backup_coords = None
        self._reset_form()
        if self.render is not None:
            self.render.clear_draft()
            self.render.set_editing(None)

    def _redraw_draft(self) -> None:
        if self.render is not None:
            self.render.sync_draft(self.mode, self.points, self.color)

    # ------------------------------------------------------------------
    # mode & form
    # ------------------------------------------------------------------

    def select_mode(self, mode: DrawMode) -> SessionState:
        """
        Start drawing in ``mode``.

        Re-selecting the current mode cancels. Any mode change discards
        the draft (and an open edit).
        """
        mode = DrawMode(mode)
        if mode == self.mode or not mode.is_drawable():
            self.cancel()
            return self.state

        if self.state.is_open():
            self._reset()

        self.mode = mode
        self._reset_form()
        logger.debug(f"Session {self.session_id}: drawing {mode.value}")
        self._redraw_draft()
        return self.state

    def cancel(self) -> None:
        if self.state.is_open():
            logger.debug(f"Session {self.session_id}: cancelled {self.state.value}")
        self._reset()

    def select_class(self, key: FeatureKey) -> bool:
        """Pick the feature class; it must support the current mode."""
        if not self.state.is_open():
            logger.debug("select_class ignored: no open session")
            return False
        schema = get_schema_or_raise(key)
        if not schema.supports_mode(self.mode):
            logger.debug(f"select_class ignored: {schema.KEY.value} does not support {self.mode.value}")
            return False
        self._reset_form(schema.KEY)
        return True

    def set_value(self, key: str, value: Any) -> None:
        self.form_values[key] = value

    def set_group_items(self, group_key: str, items: List[Dict[str, Any]]) -> None:
        normalized = self.schema.normalize_groups({group_key: list(items)})
        self.form_groups[group_key] = normalized[group_key]

    def set_color(self, color: str) -> None:
        self.color = color
        self._redraw_draft()

    # ------------------------------------------------------------------
    # points
    # ------------------------------------------------------------------

    def _append(self, p: WorldPoint) -> None:
        self.points.append(p)
        self.redo_stack = []
        self._redraw_draft()

    def add_point(self, raw: WorldPoint) -> Optional[SnapResult]:
        """Snap a pointer point (assist, then grid) and accumulate it."""
        if not self.state.is_open():
            logger.debug("add_point ignored: no open session")
            return None
        result = snap(raw, self.snap_context)
        self._append(result.point)
        return result

    def add_manual_point(self, x: Any, z: Any, y: Any = None) -> Optional[WorldPoint]:
        """
        Accumulate a typed coordinate.

        Bypasses assist and grid. Each value must be a multiple of the
        manual step; otherwise nothing is added and None is returned.
        """
        if not self.state.is_open():
            logger.debug("add_manual_point ignored: no open session")
            return None
        step = self.defaults.snap.manual_step
        px = parse_step_number(x, step)
        pz = parse_step_number(z, step)
        py = None
        if y is not None and str(y).strip():
            py = parse_step_number(y, step)
            if py is None:
                return None
        if px is None or pz is None:
            logger.debug(f"Manual point rejected: ({x}, {z}) not on step {step}")
            return None
        p = WorldPoint(x=px, z=pz, y=py)
        self._append(p)
        return p

    def undo(self) -> bool:
        if not self.points:
            return False
        self.redo_stack.append(self.points.pop())
        self._redraw_draft()
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            return False
        self.points.append(self.redo_stack.pop())
        self._redraw_draft()
        return True

    # ------------------------------------------------------------------
    # structural edits
    # ------------------------------------------------------------------

    def _replace_points(self, points: List[WorldPoint]) -> None:
        self.points = points
        self.redo_stack = []
        self._redraw_draft()

    def load_coordinate_list(self, text: str) -> Optional[List[WorldPoint]]:
        """
        Replace the draft with a typed ``x,z;x,z`` or ``x,y,z;...`` list.

        The list must parse completely and hold a point count the current
        mode accepts (exactly one for point mode). Otherwise the draft is
        left alone and None is returned.
        """
        if not self.state.is_open():
            logger.debug("load_coordinate_list ignored: no open session")
            return None
        coords = parse_coord_list(text)
        if coords is None:
            logger.debug("Coordinate list rejected: expected x,z;x,z or x,y,z;x,y,z")
            return None
        if not self.mode.accepts_point_count(len(coords)):
            logger.debug(f"Coordinate list rejected: {len(coords)} point(s) for {self.mode.value}")
            return None
        self._replace_points(list(coords))
        return coords

    def reverse_points(self) -> bool:
        """Flip the drawing direction of a line draft."""
        if self.mode != DrawMode.POLYLINE or len(self.points) < 2:
            return False
        self._replace_points(list(reversed(self.points)))
        logger.debug(f"Session {self.session_id}: direction reversed")
        return True

    def move_point(self, index: int, raw: WorldPoint) -> Optional[WorldPoint]:
        """
        Drag control point ``index`` to ``raw``.

        The new position goes through assist and grid like a new point;
        the elevation of the moved point is kept.
        """
        if not self.state.is_open() or not 0 <= index < len(self.points):
            return None
        moved = snap(raw, self.snap_context).point.with_y(self.points[index].y)
        points = list(self.points)
        points[index] = moved
        self._replace_points(points)
        return moved

    def insert_point(self, raw: WorldPoint) -> Optional[int]:
        """
        Insert a control point on the draft outline nearest to ``raw``.

        Polygons include the closing segment. The hit must lie within
        ``insert_threshold``; it is grid-snapped, and its elevation is
        interpolated when both segment ends carry one. Returns the index
        of the new point.
        """
        if not self.state.is_open() or len(self.points) < 2:
            return None
        closed = self.mode == DrawMode.POLYGON
        hit = nearest_segment(raw, self.points, closed)
        if hit is None or hit.distance > self.defaults.snap.insert_threshold:
            logger.debug("insert_point ignored: no segment in reach")
            return None

        n = len(self.points)
        a = self.points[hit.index]
        b = self.points[(hit.index + 1) % n]
        y = None
        if a.y is not None and b.y is not None:
            y = a.y + (b.y - a.y) * hit.t

        p = WorldPoint(x=hit.point[0], z=hit.point[1], y=y)
        if self.snap_context.grid is not None:
            p = self.snap_context.grid.apply(p)

        if closed:
            at = n if hit.index >= n - 1 else hit.index + 1
        else:
            at = min(hit.index + 1, n)
        points = list(self.points)
        points.insert(at, p)
        self._replace_points(points)
        return at

    # ------------------------------------------------------------------
    # edit sessions
    # ------------------------------------------------------------------

    def begin_edit(self, record_id: int) -> bool:
        """Open ``record_id`` for editing. False for unknown ids."""
        record = self.store.get(record_id)
        if record is None:
            logger.debug(f"begin_edit ignored: record {record_id} not found")
            return False

        if self.state.is_open():
            self._reset()

        schema = get_schema_or_raise(record.class_key)
        form = schema.hydrate(record.payload)

        self.mode = record.mode
        self.editing_target_id = record.id
        self.points = list(record.coords)
        self.backup_coords = list(record.coords)
        self.redo_stack = []
        self.class_key = record.class_key
        self.form_values = form.values
        self.form_groups = schema.normalize_groups(form.groups)
        self.color = record.color

        if self.render is not None:
            self.render.set_editing(record.id)
        self._redraw_draft()

        with self._context(operation=Operation.EDIT.value):
            logger.debug(f"Editing record {record.id}")
        return True

    def _on_store_event(self, event: LayerEvent) -> None:
        if self.editing_target_id is None:
            return
        if event.kind not in (LayerEventKind.DELETED, LayerEventKind.CLEARED):
            return
        if self.editing_target_id not in event.record_ids:
            return
        # Session stays open; only the draft overlay goes
        self.points = []
        self.redo_stack = []
        if self.render is not None:
            self.render.clear_draft()
        logger.debug(f"Record {self.editing_target_id} deleted while being edited")

    # ------------------------------------------------------------------
    # commit
    # ------------------------------------------------------------------

    def commit(self, now: Optional[datetime] = None) -> CommitResult:
        """
        Validate, build and store the draft.

        Returns every issue found on rejection; the session stays open.
        """
        if not self.state.is_open():
            return CommitResult.rejected(StructuralError("no open draft session"))

        op = Operation.EDIT if self.editing_target_id is not None else Operation.CREATE

        with self._context(operation=op.value):
            previous = None
            if op == Operation.EDIT:
                target = self.store.get(self.editing_target_id)
                if target is None:
                    logger.warning(f"Commit rejected: record {self.editing_target_id} no longer exists")
                    return CommitResult.rejected(
                        StructuralError(f"record {self.editing_target_id} no longer exists")
                    )
                previous = target.payload

            coords = list(self.points) if self.points else list(self.backup_coords or [])
            schema = self.schema
            issues: List[ValidationIssue] = []

            if not schema.supports_mode(self.mode):
                issues.append(StructuralError(
                    f"{schema.label} cannot be drawn as {self.mode.value}"
                ))

            if not self.mode.accepts_point_count(len(coords)):
                issues.append(GeometryError(
                    message=(
                        f"{self.mode.value} needs "
                        f"{'exactly' if self.mode == DrawMode.POINT else 'at least'} "
                        f"{self.mode.min_points()} point(s), got {len(coords)}"
                    ),
                    mode=self.mode,
                    required=self.mode.min_points(),
                    actual=len(coords),
                ))

            required = validate_required(schema, self.form_values, self.form_groups)
            issues.extend(required.issues())

            if issues:
                logger.warning(f"Commit rejected with {len(issues)} issue(s)")
                return CommitResult(ok=False, operation=op, issues=issues)

            ctx = BuildContext(
                world_id=self.world_id,
                editor_id=self.editor_id,
                previous_payload=previous,
                now=now,
                worlds=self.defaults.worlds,
            )
            payload = schema.build(op, self.mode, coords, self.form_values, self.form_groups, ctx)

            if op == Operation.EDIT:
                record = self.store.replace(
                    self.editing_target_id,
                    coords=coords,
                    payload=payload,
                    color=self.color,
                    class_key=self.class_key,
                )
            else:
                record = self.store.insert(NewRecord(
                    mode=self.mode,
                    coords=coords,
                    class_key=self.class_key,
                    payload=payload,
                    color=self.color,
                ))

            log_checkpoint("record_committed", {
                "record_id": record.id,
                "operation": op.value,
                "class_key": self.class_key.value,
                "points": len(coords),
            })
            logger.info(f"Committed record {record.id} ({op.value})")

        self._reset()
        return CommitResult(ok=True, record_id=record.id, operation=op)


__all__ = ["DEFAULT_COLOR", "DraftSession"]
