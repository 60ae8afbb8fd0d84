# ============================================================================
# LAYER EXPORT
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Service - JSON and brief CSV output of committed records
# PURPOSE: Serialize payloads with coordinates rounded to the export step
# CREATED: 19 OCT 2026
# ============================================================================
"""
Layer Export

Payloads are exported as JSON arrays (two-space indent, non-ASCII kept
as is). Every coordinate is rounded to the export step first.

The brief CSV is a maintenance listing, one row per record:

    Type,Class,World,ID,Name

with CRLF line endings and a UTF-8 BOM so spreadsheet tools detect the
encoding.
"""

import json
from typing import Any, Iterable, List, Optional

from core.config import get_defaults
from core.contracts import DrawMode, FeatureKey
from core.logging import ComponentType, get_logger
from core.models.record import Record
from schemas import get_schema
from snapping.grid import round_payload_coordinates

logger = get_logger(__name__, ComponentType.EXPORT)

CSV_HEADER = ("Type", "Class", "World", "ID", "Name")
CRLF = "\r\n"
BOM = "\ufeff"

_FALLBACK_TYPE = {
    DrawMode.POINT: "Point",
    DrawMode.POLYLINE: "Line",
    DrawMode.POLYGON: "Polygon",
}


def _step(step: Optional[float]) -> float:
    return step if step is not None else get_defaults().snap.export_step


def _dump(items: List[Any]) -> str:
    return json.dumps(items, indent=2, ensure_ascii=False)


def layer_to_json_text(record: Record, step: Optional[float] = None) -> str:
    """One record as a single-element JSON array."""
    return _dump([round_payload_coordinates(record.payload, _step(step))])


def export_layers_json(
    records: Iterable[Record],
    class_key: Optional[FeatureKey] = None,
    step: Optional[float] = None,
) -> str:
    """All payloads (optionally of one class) as one JSON array."""
    step = _step(step)
    items = [
        round_payload_coordinates(r.payload, step)
        for r in records
        if r.payload and (class_key is None or r.class_key == class_key)
    ]
    logger.debug(f"Exporting {len(items)} payload(s)")
    return _dump(items)


def csv_escape(value: Any) -> str:
    """Quote a cell when it holds a quote, comma or line break."""
    text = "" if value is None else str(value)
    text = text.replace("\u2028", " ").replace("\u2029", " ")
    text = text.replace('"', '""')
    if any(c in text for c in '",\n\r'):
        return f'"{text}"'
    return text


def _brief_row(record: Record, world_id: str) -> List[Any]:
    payload = record.payload or {}
    schema = get_schema(record.class_key)

    geometry = payload.get("Type", payload.get("type"))
    if geometry is None:
        geometry = _FALLBACK_TYPE.get(record.mode, "")
    world = payload.get("World", payload.get("world", world_id))

    record_id = schema.primary_id(payload) if schema else ""
    name = schema.primary_name(payload) if schema else ""
    return [geometry, record.class_key.value, world, record_id, name]


def build_brief_csv(records: Iterable[Record], world_id: str, bom: bool = True) -> str:
    lines = [",".join(CSV_HEADER)]
    for record in records:
        lines.append(",".join(csv_escape(v) for v in _brief_row(record, world_id)))
    text = CRLF.join(lines) + CRLF
    return BOM + text if bom else text


__all__ = [
    "CSV_HEADER",
    "layer_to_json_text",
    "export_layers_json",
    "csv_escape",
    "build_brief_csv",
]
