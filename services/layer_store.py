# ============================================================================
# LAYER STORE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Service - Committed record collection
# PURPOSE: Ordered records, monotonic ids, reorder/visibility/delete
# CREATED: 19 OCT 2026
# ============================================================================
"""
Layer Store

Exclusive owner of committed records.

Rules:
  - Ids come from a monotonic counter and are never reused, even after
    delete or clear.
  - replace() swaps payload, coords and color (and class) in one step.
  - reorder() at either end of the list is a no-op.
  - render_set(editing_id) is the visible set minus the record currently
    open in an edit session.

Mutations are announced to subscribers as LayerEvents. The draft session
uses this to drop its overlay when the record it is editing is deleted;
the render sync uses it to redraw the committed set.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional

from core.contracts import DrawMode, FeatureKey
from core.logging import ComponentType, get_logger
from core.models.geometry import WorldPoint
from core.models.record import Record

logger = get_logger(__name__, ComponentType.LAYER_STORE)


class LayerEventKind(str, Enum):
    INSERTED = "inserted"
    REPLACED = "replaced"
    REORDERED = "reordered"
    VISIBILITY = "visibility"
    DELETED = "deleted"
    CLEARED = "cleared"


@dataclass(frozen=True)
class LayerEvent:
    kind: LayerEventKind
    record_ids: List[int] = field(default_factory=list)


LayerListener = Callable[[LayerEvent], None]


@dataclass
class NewRecord:
    """Everything needed to insert a record except its id."""
    mode: DrawMode
    coords: List[WorldPoint]
    class_key: FeatureKey
    payload: dict
    color: str
    visible: bool = True


class LayerStore:
    """Ordered collection of committed records."""

    def __init__(self, first_id: int = 1):
        self._records: List[Record] = []
        self._next_id = first_id
        self._listeners: List[LayerListener] = []

    # ------------------------------------------------------------------
    # observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: LayerListener) -> Callable[[], None]:
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: LayerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: LayerEventKind, record_ids: List[int]) -> None:
        event = LayerEvent(kind=kind, record_ids=list(record_ids))
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    @property
    def records(self) -> List[Record]:
        """Snapshot of records in display order."""
        return list(self._records)

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(list(self._records))

    def __contains__(self, record_id: object) -> bool:
        return self._index_of(record_id) is not None

    def _index_of(self, record_id: object) -> Optional[int]:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        return None

    def get(self, record_id: int) -> Optional[Record]:
        index = self._index_of(record_id)
        return None if index is None else self._records[index]

    def render_set(self, editing_id: Optional[int] = None) -> List[Record]:
        """Visible records, without the one open in an edit session."""
        return [r for r in self._records if r.visible and r.id != editing_id]

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def _allocate_id(self) -> int:
        record_id = self._next_id
        self._next_id += 1
        return record_id

    def _make(self, entry: NewRecord) -> Record:
        return Record(
            id=self._allocate_id(),
            mode=entry.mode,
            color=entry.color,
            coords=list(entry.coords),
            visible=entry.visible,
            class_key=entry.class_key,
            payload=entry.payload,
        )

    def insert(self, entry: NewRecord) -> Record:
        record = self._make(entry)
        self._records.append(record)
        logger.debug(f"Inserted record {record.id} ({record.class_key.value})")
        self._emit(LayerEventKind.INSERTED, [record.id])
        return record

    def insert_many(self, entries: List[NewRecord]) -> List[Record]:
        """Append a batch; subscribers see one event for the whole batch."""
        if not entries:
            return []
        records = [self._make(e) for e in entries]
        self._records.extend(records)
        logger.debug(f"Inserted {len(records)} records")
        self._emit(LayerEventKind.INSERTED, [r.id for r in records])
        return records

    def replace(
        self,
        record_id: int,
        coords: List[WorldPoint],
        payload: dict,
        color: Optional[str] = None,
        class_key: Optional[FeatureKey] = None,
    ) -> Optional[Record]:
        """Swap geometry, payload and color of an existing record."""
        index = self._index_of(record_id)
        if index is None:
            return None
        current = self._records[index]
        updated = current.model_copy(update={
            "coords": list(coords),
            "payload": payload,
            "color": color if color is not None else current.color,
            "class_key": class_key if class_key is not None else current.class_key,
        })
        self._records[index] = updated
        logger.debug(f"Replaced record {record_id}")
        self._emit(LayerEventKind.REPLACED, [record_id])
        return updated

    def reorder(self, record_id: int, direction: str) -> bool:
        """Move one step ``up`` (towards index 0) or ``down``; False at bounds."""
        if direction not in ("up", "down"):
            raise ValueError(f"direction must be 'up' or 'down', got '{direction}'")
        index = self._index_of(record_id)
        if index is None:
            return False
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(self._records):
            return False
        self._records[index], self._records[target] = self._records[target], self._records[index]
        self._emit(LayerEventKind.REORDERED, [record_id])
        return True

    def toggle_visible(self, record_id: int) -> Optional[bool]:
        """Flip visibility; returns the new value or None for unknown ids."""
        index = self._index_of(record_id)
        if index is None:
            return None
        record = self._records[index]
        self._records[index] = record.model_copy(update={"visible": not record.visible})
        self._emit(LayerEventKind.VISIBILITY, [record_id])
        return not record.visible

    def delete(self, record_id: int) -> bool:
        index = self._index_of(record_id)
        if index is None:
            return False
        del self._records[index]
        logger.debug(f"Deleted record {record_id}")
        self._emit(LayerEventKind.DELETED, [record_id])
        return True

    def clear(self) -> None:
        """Remove every record. The id counter keeps counting."""
        ids = [r.id for r in self._records]
        self._records.clear()
        self._emit(LayerEventKind.CLEARED, ids)


__all__ = [
    "LayerEventKind",
    "LayerEvent",
    "LayerListener",
    "NewRecord",
    "LayerStore",
]
