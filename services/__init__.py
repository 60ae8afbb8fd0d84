# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Core - Editing, import/export and mount-check layer
# PURPOSE: Draft session, layer store, render sync, import, export, id index
# CREATED: 19 OCT 2026
# ============================================================================
"""
Services Module

Everything that holds or moves feature state. The schema registry and the
snapping engine are pure; services own the mutable parts.

Usage:
    from services import LayerStore, DraftSession

    store = LayerStore()
    session = DraftSession(store, world_id="zth", editor_id="alice")
    session.select_mode(DrawMode.POINT)
    session.select_class(FeatureKey.STATION)
    ...
    result = session.commit()
"""

from .layer_store import LayerEvent, LayerEventKind, LayerStore, NewRecord
from .render_sync import (
    ClearContainer,
    DrawPrimitive,
    Primitive,
    RemovePrimitive,
    RenderContainer,
    RenderSurface,
    RenderSync,
)
from .draft_session import DraftSession
from .import_service import ImportPipeline, extract_items, format_import_summary, parse_lenient_json
from .export_service import build_brief_csv, export_layers_json, layer_to_json_text
from .id_index import (
    GlobalIdIndex,
    IdHit,
    MountCandidate,
    PreviewMountGuard,
    check_mount_id_conflicts,
    collect_mount_candidates,
)

__all__ = [
    # Layer store
    "LayerEvent",
    "LayerEventKind",
    "LayerStore",
    "NewRecord",
    # Render
    "ClearContainer",
    "DrawPrimitive",
    "Primitive",
    "RemovePrimitive",
    "RenderContainer",
    "RenderSurface",
    "RenderSync",
    # Session
    "DraftSession",
    # Import / export
    "ImportPipeline",
    "extract_items",
    "format_import_summary",
    "parse_lenient_json",
    "build_brief_csv",
    "export_layers_json",
    "layer_to_json_text",
    # Mount check
    "GlobalIdIndex",
    "IdHit",
    "MountCandidate",
    "PreviewMountGuard",
    "check_mount_id_conflicts",
    "collect_mount_candidates",
]
