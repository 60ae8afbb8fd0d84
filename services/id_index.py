# ============================================================================
# GLOBAL ID INDEX & PREVIEW MOUNT GUARD
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Service - Duplicate-id check before a preview mount
# PURPOSE: Compare record ids with each other and with the world database
# CREATED: 19 OCT 2026
# ============================================================================
"""
Global ID Index

Before committed records are mounted as a preview next to the published
data, their primary ids are checked:

    1. against each other (no network, reported immediately)
    2. against every file of the world's published database

Step 2 only runs when step 1 finds nothing. Files are fetched one at a
time; a file that fails to load is skipped, so the check is best effort.
The per-world index is cached for ``cache_ttl_seconds``.

This is the only asynchronous part of the editor. PreviewMountGuard runs
the check as a cancellable task, keeps the trigger disabled while it runs,
shows a spinner only when it takes longer than ``spinner_delay_seconds``
and discards the result when cancelled.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from core.config import IdIndexDefaults, get_defaults
from core.logging import ComponentType, get_logger, log_checkpoint
from schemas import get_schema
from services.layer_store import LayerStore

logger = get_logger(__name__, ComponentType.ID_INDEX)


@dataclass(frozen=True)
class IdHit:
    """Where an id was first seen in the published database."""
    file: str
    id: str
    name: str


@dataclass(frozen=True)
class MountCandidate:
    """A committed record about to be mounted: display title and primary id."""
    title: str
    id: str


# ============================================================================
# FIELD PICKING
# ============================================================================

# Preferred id fields by class code; the generic fallbacks follow
ID_FIELD_CANDIDATES: Dict[str, tuple] = {
    "STB": ("staBuildingID",),
    "STF": ("staBFloorID",),
    "PLF": ("platformID",),
    "PFB": ("plfRoundID", "platformID"),
    "STA": ("stationID",),
    "RLE": ("LineID", "lineID"),
}

NAME_FIELD_CANDIDATES = (
    "Name", "name", "StaName", "StationName", "LineName", "PlatformName", "BuildingName",
)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def pick_id_value(obj: Dict[str, Any], class_code: str) -> str:
    fields = list(ID_FIELD_CANDIDATES.get(class_code, ()))
    fields += ["ID", f"{class_code}ID", f"{class_code.lower()}ID", "name", "staName"]
    for name in fields:
        value = _text(obj.get(name))
        if value:
            return value
    return ""


def pick_any_name(obj: Dict[str, Any]) -> str:
    for name in NAME_FIELD_CANDIDATES:
        if obj.get(name) is not None:
            value = _text(obj[name])
            if value:
                return value
            break
    for key, value in obj.items():
        if isinstance(key, str) and (key.endswith("Name") or key.endswith("name")):
            text = _text(value)
            if text:
                return text
    return ""


def extract_objects(document: Any) -> List[Dict[str, Any]]:
    """Feature objects in a database file (array, items/features, or object of arrays)."""
    if isinstance(document, list):
        return [x for x in document if isinstance(x, dict)]
    if not isinstance(document, dict):
        return []
    direct = document.get("items", document.get("features"))
    if isinstance(direct, list):
        return [x for x in direct if isinstance(x, dict)]
    out: List[Dict[str, Any]] = []
    for value in document.values():
        if isinstance(value, list):
            out.extend(x for x in value if isinstance(x, dict))
    return out


# ============================================================================
# INDEX
# ============================================================================

@dataclass
class _CacheEntry:
    built_at: float
    index: Dict[str, IdHit]


class GlobalIdIndex:
    """Per-world id -> IdHit map built from the published database files."""

    def __init__(
        self,
        config: Optional[IdIndexDefaults] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or get_defaults().id_index
        self._clock = clock
        self._cache: Dict[str, _CacheEntry] = {}

    def invalidate(self, world_id: Optional[str] = None) -> None:
        if world_id is None:
            self._cache.clear()
        else:
            self._cache.pop(world_id, None)

    async def load(self, world_id: str) -> Dict[str, IdHit]:
        now = self._clock()
        cached = self._cache.get(world_id)
        if cached and now - cached.built_at < self.config.cache_ttl_seconds:
            return cached.index

        index: Dict[str, IdHit] = {}
        if self.config.base_url and self.config.files:
            async with httpx.AsyncClient(timeout=self.config.request_timeout_seconds) as client:
                # One file at a time
                for file_name in self.config.files:
                    document = await self._fetch_json(client, self.config.url_for(world_id, file_name))
                    if document is None:
                        continue
                    self._add_document(index, file_name, document)
        else:
            logger.debug(f"No database files configured for world {world_id}")

        self._cache[world_id] = _CacheEntry(built_at=now, index=index)
        logger.debug(f"Built id index for {world_id}: {len(index)} id(s)")
        return index

    async def _fetch_json(self, client: httpx.AsyncClient, url: str) -> Optional[Any]:
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning(f"Skipping {url}: {e}")
            return None
        if not 200 <= response.status_code < 300:
            logger.warning(f"Skipping {url}: status {response.status_code}")
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Skipping {url}: invalid JSON ({e})")
            return None

    @staticmethod
    def _add_document(index: Dict[str, IdHit], file_name: str, document: Any) -> None:
        for obj in extract_objects(document):
            class_code = _text(obj.get("Class", obj.get("subType", obj.get("Type", ""))))
            record_id = pick_id_value(obj, class_code)
            # First file wins
            if not record_id or record_id in index:
                continue
            index[record_id] = IdHit(file=file_name, id=record_id, name=pick_any_name(obj))


# ============================================================================
# CHECK
# ============================================================================

def collect_mount_candidates(store: LayerStore, editing_id: Optional[int] = None) -> List[MountCandidate]:
    """Records with a non-blank primary id, minus the one under edit."""
    out: List[MountCandidate] = []
    for record in store:
        if record.id == editing_id:
            continue
        schema = get_schema(record.class_key)
        if schema is None:
            continue
        record_id = schema.primary_id(record.payload)
        if not record_id:
            continue
        name = schema.primary_name(record.payload)
        out.append(MountCandidate(title=f"{record_id} {name}" if name else record_id, id=record_id))
    return out


async def check_mount_id_conflicts(
    index: GlobalIdIndex, world_id: str, candidates: List[MountCandidate]
) -> List[str]:
    """
    Messages for every duplicate id; empty when the mount may go ahead.

    Internal duplicates are reported alone, without touching the network.
    """
    messages: List[str] = []
    seen: Dict[str, str] = {}
    for candidate in candidates:
        cid = _text(candidate.id)
        if not cid:
            continue
        previous = seen.get(cid)
        if previous is not None:
            messages.append(f"当前临时图层中的{candidate.title}，与 当前临时图层中的{previous} 的ID {cid} 重合")
            continue
        seen[cid] = candidate.title
    if messages:
        return messages

    hits = await index.load(world_id)
    for candidate in candidates:
        cid = _text(candidate.id)
        hit = hits.get(cid) if cid else None
        if hit is None:
            continue
        messages.append(f"当前临时图层中的{candidate.title}，与 {hit.file} {hit.id} {hit.name} 重合")
    return messages


class PreviewMountGuard:
    """
    Runs the mount check as a cancellable task.

    ``on_spinner(True)`` fires only if the check outlives the spinner delay;
    ``on_spinner(False)`` follows when it ends. While ``busy`` is True a
    second run() returns None immediately.
    """

    def __init__(
        self,
        index: GlobalIdIndex,
        world_id: str,
        spinner_delay: Optional[float] = None,
        on_spinner: Optional[Callable[[bool], None]] = None,
    ):
        self.index = index
        self.world_id = world_id
        self.spinner_delay = (
            spinner_delay if spinner_delay is not None
            else get_defaults().id_index.spinner_delay_seconds
        )
        self.on_spinner = on_spinner
        self.spinner_visible = False
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    @property
    def busy(self) -> bool:
        return self._task is not None

    def _set_spinner(self, visible: bool) -> None:
        self.spinner_visible = visible
        if self.on_spinner is not None:
            self.on_spinner(visible)

    async def run(self, candidates: List[MountCandidate]) -> Optional[List[str]]:
        """Conflict messages, or None when cancelled or already running."""
        if self.busy:
            logger.debug("Mount check already running")
            return None

        loop = asyncio.get_running_loop()
        self._cancel_requested = False
        self._task = asyncio.ensure_future(
            check_mount_id_conflicts(self.index, self.world_id, candidates)
        )
        timer = loop.call_later(self.spinner_delay, self._set_spinner, True)
        try:
            messages = await self._task
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            logger.debug("Mount check cancelled; result discarded")
            return None
        finally:
            timer.cancel()
            if self.spinner_visible:
                self._set_spinner(False)
            self._task = None

        log_checkpoint("mount_check", {
            "world_id": self.world_id,
            "candidates": len(candidates),
            "conflicts": len(messages),
        })
        return messages

    def cancel(self) -> bool:
        if self._task is None or self._task.done():
            return False
        self._cancel_requested = True
        self._task.cancel()
        return True


__all__ = [
    "IdHit",
    "MountCandidate",
    "pick_id_value",
    "pick_any_name",
    "extract_objects",
    "GlobalIdIndex",
    "collect_mount_candidates",
    "check_mount_id_conflicts",
    "PreviewMountGuard",
]
