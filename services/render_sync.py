# ============================================================================
# RENDER SYNC
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Service - Declarative redraw instructions
# PURPOSE: Keep "should be visible" sets per container and emit diffs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Render Sync

The core never touches rendering internals. It keeps, per named container,
the set of primitives that should be visible and sends the renderer only
the difference from what it sent last time.

Containers:
    committed       visible records, minus the one under edit
    draft           the geometry of the open draft session
    endpoint        the latest draft point
    control_points  one marker per draft point

Committed and draft sets are independent; the renderer is never asked to
reconcile a merged tree.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union

from core.contracts import DrawMode
from core.logging import ComponentType, get_logger
from core.models.geometry import WorldPoint
from services.layer_store import LayerEvent, LayerStore

logger = get_logger(__name__, ComponentType.RENDER)


class RenderContainer(str, Enum):
    COMMITTED = "committed"
    DRAFT = "draft"
    ENDPOINT = "endpoint"
    CONTROL_POINTS = "control_points"


@dataclass(frozen=True)
class Primitive:
    kind: DrawMode
    points: Tuple[WorldPoint, ...]
    color: str


@dataclass(frozen=True)
class DrawPrimitive:
    container: RenderContainer
    key: str
    primitive: Primitive


@dataclass(frozen=True)
class RemovePrimitive:
    container: RenderContainer
    key: str


@dataclass(frozen=True)
class ClearContainer:
    container: RenderContainer


RenderInstruction = Union[DrawPrimitive, RemovePrimitive, ClearContainer]


class RenderSurface(ABC):
    """Rendering collaborator. Receives primitive draw/undraw calls only."""

    @abstractmethod
    def draw_primitive(
        self,
        container: RenderContainer,
        key: str,
        kind: DrawMode,
        points: Sequence[WorldPoint],
        color: str,
    ) -> None:
        ...

    @abstractmethod
    def remove_primitive(self, container: RenderContainer, key: str) -> None:
        ...

    @abstractmethod
    def clear_primitives(self, container: RenderContainer) -> None:
        ...

    def apply(self, instruction: RenderInstruction) -> None:
        if isinstance(instruction, DrawPrimitive):
            p = instruction.primitive
            self.draw_primitive(instruction.container, instruction.key, p.kind, p.points, p.color)
        elif isinstance(instruction, RemovePrimitive):
            self.remove_primitive(instruction.container, instruction.key)
        else:
            self.clear_primitives(instruction.container)


ENDPOINT_COLOR = "#ff5252"
CONTROL_POINT_COLOR = "#ffffff"


class RenderSync:
    """Diff-based bridge between core state and a RenderSurface."""

    def __init__(self, surface: Optional[RenderSurface] = None):
        self.surface = surface
        self.editing_id: Optional[int] = None
        self._store: Optional[LayerStore] = None
        self._unsubscribe = None
        self._visible: Dict[RenderContainer, Dict[str, Primitive]] = {
            c: {} for c in RenderContainer
        }

    # ------------------------------------------------------------------
    # wiring
    # ------------------------------------------------------------------

    def bind_store(self, store: LayerStore) -> None:
        """Redraw the committed set whenever the store changes."""
        self.unbind_store()
        self._store = store
        self._unsubscribe = store.subscribe(self._on_store_event)
        self.sync_committed()

    def unbind_store(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._store = None

    def _on_store_event(self, event: LayerEvent) -> None:
        self.sync_committed()

    def visible(self, container: RenderContainer) -> Dict[str, Primitive]:
        return dict(self._visible[container])

    # ------------------------------------------------------------------
    # diffing
    # ------------------------------------------------------------------

    def sync(
        self, container: RenderContainer, desired: Dict[str, Primitive]
    ) -> List[RenderInstruction]:
        """Bring ``container`` to ``desired``; returns the emitted instructions."""
        current = self._visible[container]
        instructions: List[RenderInstruction] = []

        if not desired and current:
            instructions.append(ClearContainer(container))
        else:
            for key in current:
                if key not in desired or desired[key] != current[key]:
                    instructions.append(RemovePrimitive(container, key))
            for key, primitive in desired.items():
                if current.get(key) != primitive:
                    instructions.append(DrawPrimitive(container, key, primitive))

        self._visible[container] = dict(desired)

        if instructions:
            logger.debug(f"Render {container.value}: {len(instructions)} instruction(s)")
        if self.surface is not None:
            for instruction in instructions:
                self.surface.apply(instruction)
        return instructions

    def sync_committed(self) -> List[RenderInstruction]:
        if self._store is None:
            return []
        desired = {
            str(r.id): Primitive(kind=r.mode, points=tuple(r.coords), color=r.color)
            for r in self._store.render_set(self.editing_id)
        }
        return self.sync(RenderContainer.COMMITTED, desired)

    def sync_draft(
        self, mode: DrawMode, points: Sequence[WorldPoint], color: str
    ) -> List[RenderInstruction]:
        """Redraw the draft geometry, its endpoint and its control points."""
        points = tuple(points)
        draft: Dict[str, Primitive] = {}
        if mode == DrawMode.POINT:
            for i, p in enumerate(points):
                draft[str(i)] = Primitive(kind=DrawMode.POINT, points=(p,), color=color)
        elif len(points) >= 2:
            kind = mode if mode.accepts_point_count(len(points)) else DrawMode.POLYLINE
            draft["shape"] = Primitive(kind=kind, points=points, color=color)

        endpoint: Dict[str, Primitive] = {}
        if points:
            endpoint["last"] = Primitive(kind=DrawMode.POINT, points=(points[-1],), color=ENDPOINT_COLOR)

        control: Dict[str, Primitive] = {}
        if mode != DrawMode.POINT:
            control = {
                str(i): Primitive(kind=DrawMode.POINT, points=(p,), color=CONTROL_POINT_COLOR)
                for i, p in enumerate(points)
            }

        instructions = self.sync(RenderContainer.DRAFT, draft)
        instructions += self.sync(RenderContainer.ENDPOINT, endpoint)
        instructions += self.sync(RenderContainer.CONTROL_POINTS, control)
        return instructions

    def clear_draft(self) -> List[RenderInstruction]:
        instructions: List[RenderInstruction] = []
        for container in (RenderContainer.DRAFT, RenderContainer.ENDPOINT, RenderContainer.CONTROL_POINTS):
            instructions += self.sync(container, {})
        return instructions

    def set_editing(self, record_id: Optional[int]) -> List[RenderInstruction]:
        """Exclude ``record_id`` from the committed set (None restores it)."""
        self.editing_id = record_id
        return self.sync_committed()


__all__ = [
    "RenderContainer",
    "Primitive",
    "DrawPrimitive",
    "RemovePrimitive",
    "ClearContainer",
    "RenderInstruction",
    "RenderSurface",
    "RenderSync",
]
