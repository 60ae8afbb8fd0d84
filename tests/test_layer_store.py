# ============================================================================
# LAYER STORE & RENDER SYNC TESTS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Tests - Committed records and diff-based redraw
# PURPOSE: Verify id allocation, ordering, visibility and render diffs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Layer Store & Render Sync Tests

A recording RenderSurface stands in for the map renderer.

Run with:
    pytest tests/test_layer_store.py -v
"""

import pytest

from core.contracts import DrawMode, FeatureKey
from core.models.geometry import WorldPoint
from services.layer_store import LayerEventKind, LayerStore, NewRecord
from services.render_sync import (
    ClearContainer,
    DrawPrimitive,
    RemovePrimitive,
    RenderContainer,
    RenderSurface,
    RenderSync,
)


# ============================================================================
# HELPERS
# ============================================================================

def _entry(mode=DrawMode.POINT, n=1, color="#000000", class_key=FeatureKey.DEFAULT):
    coords = [WorldPoint(x=i, z=i) for i in range(n)]
    return NewRecord(mode=mode, coords=coords, class_key=class_key, payload={"n": n}, color=color)


class RecordingSurface(RenderSurface):
    """Collects every call as a tuple."""

    def __init__(self):
        self.calls = []

    def draw_primitive(self, container, key, kind, points, color):
        self.calls.append(("draw", container, key, kind, len(points)))

    def remove_primitive(self, container, key):
        self.calls.append(("remove", container, key))

    def clear_primitives(self, container):
        self.calls.append(("clear", container))


# ============================================================================
# LAYER STORE
# ============================================================================

class TestLayerStore:
    """Tests for LayerStore."""

    def test_ids_are_monotonic_and_never_reused(self):
        store = LayerStore()
        first = store.insert(_entry())
        second = store.insert(_entry())
        assert (first.id, second.id) == (1, 2)

        store.delete(second.id)
        assert store.insert(_entry()).id == 3

        store.clear()
        assert len(store) == 0
        assert store.insert(_entry()).id == 4

    def test_insert_many_single_event(self):
        store = LayerStore()
        events = []
        store.subscribe(events.append)

        records = store.insert_many([_entry(), _entry(), _entry()])
        assert [r.id for r in records] == [1, 2, 3]
        assert len(events) == 1
        assert events[0].kind == LayerEventKind.INSERTED
        assert events[0].record_ids == [1, 2, 3]

    def test_insert_many_empty(self):
        store = LayerStore()
        assert store.insert_many([]) == []
        assert store.next_id == 1

    def test_replace_swaps_payload_coords_color(self):
        store = LayerStore()
        record = store.insert(_entry(color="#111111"))

        updated = store.replace(
            record.id,
            coords=[WorldPoint(x=9, z=9)],
            payload={"n": 99},
            color="#222222",
        )
        assert updated.payload == {"n": 99}
        assert updated.coords[0].xz() == (9, 9)
        assert updated.color == "#222222"
        assert store.get(record.id) == updated

    def test_replace_keeps_color_when_omitted(self):
        store = LayerStore()
        record = store.insert(_entry(color="#111111"))
        assert store.replace(record.id, coords=[], payload={}).color == "#111111"

    def test_replace_unknown(self):
        assert LayerStore().replace(5, coords=[], payload={}) is None

    def test_reorder(self):
        store = LayerStore()
        a, b, c = store.insert_many([_entry(), _entry(), _entry()])

        assert store.reorder(c.id, "up") is True
        assert [r.id for r in store.records] == [a.id, c.id, b.id]
        assert store.reorder(a.id, "up") is False
        assert store.reorder(b.id, "down") is False
        assert store.reorder(42, "up") is False

    def test_reorder_bad_direction(self):
        store = LayerStore()
        record = store.insert(_entry())
        with pytest.raises(ValueError):
            store.reorder(record.id, "left")

    def test_toggle_visible_and_render_set(self):
        store = LayerStore()
        a, b, c = store.insert_many([_entry(), _entry(), _entry()])

        assert store.toggle_visible(b.id) is False
        assert [r.id for r in store.render_set()] == [a.id, c.id]
        assert [r.id for r in store.render_set(editing_id=a.id)] == [c.id]
        assert store.toggle_visible(b.id) is True
        assert store.toggle_visible(77) is None

    def test_unsubscribe(self):
        store = LayerStore()
        events = []
        unsubscribe = store.subscribe(events.append)
        store.insert(_entry())
        unsubscribe()
        store.insert(_entry())
        assert len(events) == 1

    def test_delete_and_clear_events(self):
        store = LayerStore()
        a, b = store.insert_many([_entry(), _entry()])
        events = []
        store.subscribe(events.append)

        assert store.delete(a.id) is True
        assert store.delete(a.id) is False
        store.clear()

        assert [(e.kind, e.record_ids) for e in events] == [
            (LayerEventKind.DELETED, [a.id]),
            (LayerEventKind.CLEARED, [b.id]),
        ]


# ============================================================================
# RENDER SYNC
# ============================================================================

class TestRenderSync:
    """Tests for diff-based render instructions."""

    def test_bind_draws_visible_records(self):
        store = LayerStore()
        store.insert_many([_entry(), _entry(mode=DrawMode.POLYLINE, n=2)])
        surface = RecordingSurface()

        RenderSync(surface).bind_store(store)
        assert surface.calls == [
            ("draw", RenderContainer.COMMITTED, "1", DrawMode.POINT, 1),
            ("draw", RenderContainer.COMMITTED, "2", DrawMode.POLYLINE, 2),
        ]

    def test_only_changes_are_sent(self):
        store = LayerStore()
        a, b = store.insert_many([_entry(), _entry()])
        surface = RecordingSurface()
        RenderSync(surface).bind_store(store)
        surface.calls.clear()

        store.replace(b.id, coords=[WorldPoint(x=5, z=5)], payload={}, color="#ff0000")
        assert surface.calls == [
            ("remove", RenderContainer.COMMITTED, str(b.id)),
            ("draw", RenderContainer.COMMITTED, str(b.id), DrawMode.POINT, 1),
        ]

        surface.calls.clear()
        store.reorder(b.id, "up")
        assert surface.calls == []

    def test_hidden_record_removed(self):
        store = LayerStore()
        a, _ = store.insert_many([_entry(), _entry()])
        sync = RenderSync()
        sync.bind_store(store)

        store.toggle_visible(a.id)
        assert list(sync.visible(RenderContainer.COMMITTED)) == ["2"]

    def test_editing_record_excluded(self):
        store = LayerStore()
        a, b = store.insert_many([_entry(), _entry()])
        sync = RenderSync()
        sync.bind_store(store)

        instructions = sync.set_editing(a.id)
        assert instructions == [RemovePrimitive(RenderContainer.COMMITTED, str(a.id))]

        instructions = sync.set_editing(None)
        assert len(instructions) == 1
        assert isinstance(instructions[0], DrawPrimitive)
        assert instructions[0].key == str(a.id)

    def test_clear_emits_single_clear(self):
        store = LayerStore()
        store.insert_many([_entry(), _entry(), _entry()])
        surface = RecordingSurface()
        RenderSync(surface).bind_store(store)
        surface.calls.clear()

        store.clear()
        assert surface.calls == [("clear", RenderContainer.COMMITTED)]

    def test_draft_polygon_drawn_as_line_until_complete(self):
        sync = RenderSync()
        points = [WorldPoint(x=0, z=0), WorldPoint(x=1, z=0)]

        sync.sync_draft(DrawMode.POLYGON, points, "#123456")
        assert sync.visible(RenderContainer.DRAFT)["shape"].kind == DrawMode.POLYLINE
        assert len(sync.visible(RenderContainer.CONTROL_POINTS)) == 2

        sync.sync_draft(DrawMode.POLYGON, points + [WorldPoint(x=1, z=1)], "#123456")
        assert sync.visible(RenderContainer.DRAFT)["shape"].kind == DrawMode.POLYGON
        assert sync.visible(RenderContainer.ENDPOINT)["last"].points[0].xz() == (1, 1)

    def test_draft_points_have_no_control_markers(self):
        sync = RenderSync()
        sync.sync_draft(DrawMode.POINT, [WorldPoint(x=2, z=3)], "#123456")
        assert list(sync.visible(RenderContainer.DRAFT)) == ["0"]
        assert sync.visible(RenderContainer.CONTROL_POINTS) == {}

    def test_clear_draft(self):
        sync = RenderSync()
        sync.sync_draft(DrawMode.POLYLINE, [WorldPoint(x=0, z=0), WorldPoint(x=1, z=0)], "#123456")

        instructions = sync.clear_draft()
        assert ClearContainer(RenderContainer.DRAFT) in instructions
        assert ClearContainer(RenderContainer.ENDPOINT) in instructions
        assert ClearContainer(RenderContainer.CONTROL_POINTS) in instructions
        assert sync.clear_draft() == []
