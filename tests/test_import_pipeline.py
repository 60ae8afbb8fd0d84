# ============================================================================
# BULK IMPORT TESTS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Tests - Lenient parsing and all-or-nothing import
# PURPOSE: Verify item extraction, per-item validation and summaries
# CREATED: 19 OCT 2026
# ============================================================================
"""
Bulk Import Tests

Run with:
    pytest tests/test_import_pipeline.py -v
"""

import json
import random
import re
from datetime import datetime

import pytest

from core.contracts import DrawMode, FeatureKey
from core.models.validation import (
    GeometryError,
    ImportItemFailure,
    ImportResult,
    MissingRequiredError,
    StructuralError,
    SystemFieldMismatchError,
)
from schemas import UnknownWorldError
from services.import_service import (
    ImportPipeline,
    extract_items,
    format_import_summary,
    parse_lenient_json,
)
from services.layer_store import LayerStore

NOW = datetime(2026, 10, 19, 8, 30, 0)


# ============================================================================
# HELPERS
# ============================================================================

def _railway(**overrides):
    item = {
        "Type": "Polyline",
        "Class": "RLE",
        "World": 0,
        "LineID": "L1",
        "LineName": "Main line",
        "direction": 2,
        "PLpoints": [[0, -63, 0], [10, -63, 0]],
    }
    item.update(overrides)
    return item


def _landmark(**overrides):
    item = {
        "Type": "Points",
        "Class": "ISP",
        "World": 0,
        "ID": "P1",
        "Name": "Tower",
        "PointKind": "tower",
        "coordinate": {"x": 1.5, "z": 2, "y": 70},
    }
    item.update(overrides)
    return item


def _run(items, store=None, world_id="zth"):
    store = store if store is not None else LayerStore()
    pipeline = ImportPipeline(store, world_id=world_id, rng=random.Random(7))
    return pipeline.run(json.dumps(items, ensure_ascii=False), now=NOW), store


# ============================================================================
# PARSING
# ============================================================================

class TestParseLenientJson:
    """Tests for lenient parsing."""

    def test_plain_json(self):
        outcome = parse_lenient_json('[{"a": 1}]')
        assert outcome.ok is True
        assert outcome.repaired is False
        assert outcome.value == [{"a": 1}]

    @pytest.mark.parametrize("text", [
        '{"a": 1},{"b": 2}',
        '{"a": 1}\n{"b": 2}',
        '{"a": 1}\r\n\r\n{"b": 2}',
        '{"a": 1} ,\n {"b": 2},',
    ])
    def test_bare_objects_repaired(self, text):
        outcome = parse_lenient_json(text)
        assert outcome.ok is True
        assert outcome.repaired is True
        assert outcome.value == [{"a": 1}, {"b": 2}]

    @pytest.mark.parametrize("text", ["", "   ", "not json", '{"a": 1'])
    def test_unparseable(self, text):
        outcome = parse_lenient_json(text)
        assert outcome.ok is False
        assert isinstance(outcome.error, StructuralError)


class TestExtractItems:
    """Tests for flattening a parsed document."""

    def test_array(self):
        assert extract_items([1, 2]) == [1, 2]

    def test_wrapped(self):
        assert extract_items({"items": [1]}) == [1]
        assert extract_items({"features": [2]}) == [2]

    def test_object_of_arrays_in_key_order(self):
        assert extract_items({"B": [1], "meta": "x", "A": [2, 3]}) == [1, 2, 3]

    def test_single_object(self):
        assert extract_items({"Class": "ISP"}) == [{"Class": "ISP"}]

    def test_bare_feature_with_list_values_kept_whole(self):
        railway = _railway()
        assert extract_items(railway) == [railway]

        station = {"Class": "STA", "platforms": [{"ID": "P1"}]}
        assert extract_items(station) == [station]

    def test_wrapper_with_type_still_unwraps(self):
        assert extract_items({"Type": "FeatureCollection", "features": [1, 2]}) == [1, 2]

    def test_scalar(self):
        assert extract_items(5) == []


# ============================================================================
# PIPELINE
# ============================================================================

class TestImportPipeline:
    """Tests for ImportPipeline.run."""

    def test_successful_batch(self):
        result, store = _run([_railway(), _landmark()])

        assert result.ok is True
        assert result.total_items == 2
        assert result.inserted_ids == [1, 2]

        railway, landmark = store.records
        assert railway.class_key == FeatureKey.RAILWAY
        assert railway.mode == DrawMode.POLYLINE
        assert landmark.coords[0].y == 70
        assert landmark.payload["coordinate"] == {"x": 1.5, "z": 2, "y": 70}
        assert re.fullmatch(r"#[0-9a-f]{6}", railway.color)

    def test_missing_required_inserts_nothing(self):
        bad = _railway()
        del bad["LineID"]

        result, store = _run([_landmark(), bad])

        assert result.ok is False
        assert len(store) == 0
        assert result.inserted_ids == []
        assert [f.index for f in result.failures] == [1]
        issues = result.failures[0].issues
        assert any(isinstance(i, MissingRequiredError) and i.field_key == "LineID" for i in issues)

    def test_audit_fields_come_from_item(self):
        item = _landmark(CreateTime="2025-01-01 00:00:00", CreateBy="carol", ModifityBy="dave")
        result, store = _run([item])

        payload = store.get(result.inserted_ids[0]).payload
        assert payload["CreateTime"] == "2025-01-01 00:00:00"
        assert payload["CreateBy"] == "carol"
        assert payload["ModifityBy"] == "dave"

    def test_missing_create_time_is_stamped(self):
        result, store = _run([_landmark()])
        assert store.get(result.inserted_ids[0]).payload["CreateTime"] == "2026-10-19 08:30:00"

    def test_unknown_or_missing_class(self):
        no_class = _landmark()
        del no_class["Class"]

        result, _ = _run([_landmark(Class="XYZ"), no_class, _landmark(Class="铁路")])

        assert result.ok is False
        assert [f.index for f in result.failures] == [0, 1, 2]
        assert all(isinstance(f.issues[0], StructuralError) for f in result.failures)

    def test_point_count(self):
        item = {
            "Class": "ISG",
            "ID": "A1",
            "Name": "Lake",
            "PGonKind": "water",
            "Conpoints": [[0, 64, 0], [1, 64, 0]],
        }
        result, _ = _run([item])

        assert result.ok is False
        errors = [i for i in result.failures[0].issues if isinstance(i, GeometryError)]
        assert errors[0].required == 3
        assert errors[0].actual == 2

    def test_declared_world_mismatch(self):
        result, _ = _run([_landmark(World=3)])

        issue = result.failures[0].issues[0]
        assert isinstance(issue, SystemFieldMismatchError)
        assert issue.field_name == "World"

    def test_world_matches_page(self):
        result, _ = _run([_landmark(World=3)], world_id="eden")
        assert result.ok is True

    def test_every_issue_of_every_item_collected(self):
        first = _railway(LineID="", startplf=5)
        second = _landmark(Type="Polygon", Name="")

        result, _ = _run([first, second])

        assert len(result.failures) == 2
        assert len(result.failures[0].issues) == 2
        assert len(result.failures[1].issues) == 2
        assert all(i.item_index in (0, 1) for i in result.issues)

    def test_empty_batch(self):
        result, _ = _run([])
        assert result.ok is False
        assert result.errors[0].message == "no importable items found"

    def test_unparseable_text(self):
        result = ImportPipeline(LayerStore(), world_id="zth").run("{{{")
        assert result.ok is False
        assert isinstance(result.errors[0], StructuralError)

    def test_repaired_paste(self):
        text = json.dumps(_railway()) + "\n" + json.dumps(_landmark())
        result = ImportPipeline(LayerStore(), world_id="zth").run(text, now=NOW)
        assert result.ok is True
        assert len(result.inserted_ids) == 2

    def test_bare_railway_object(self):
        result = ImportPipeline(LayerStore(), world_id="zth").run(json.dumps(_railway()), now=NOW)

        assert result.ok is True
        assert result.total_items == 1
        assert result.inserted_ids == [1]

    def test_bare_station_object_with_platforms(self):
        station = {
            "Class": "STA",
            "Type": "Points",
            "World": 0,
            "stationID": "S1",
            "stationName": "Central",
            "coordinate": {"x": 0, "z": 0},
            "platforms": [{"ID": "P1", "condistance": 0.5}],
        }
        store = LayerStore()
        result = ImportPipeline(store, world_id="zth").run(json.dumps(station), now=NOW)

        assert result.ok is True
        assert result.total_items == 1
        assert store.get(result.inserted_ids[0]).class_key == FeatureKey.STATION

    def test_unknown_world(self):
        with pytest.raises(UnknownWorldError):
            ImportPipeline(LayerStore(), world_id="mars")


# ============================================================================
# SUMMARY
# ============================================================================

class TestImportSummary:
    """Tests for format_import_summary."""

    def test_success(self):
        result = ImportResult(ok=True, total_items=2, inserted_ids=[4, 5])
        assert format_import_summary(result) == "Imported 2 item(s)."

    def test_truncated_with_total(self):
        result = ImportResult(
            ok=False,
            failures=[
                ImportItemFailure(index=0, class_code="RLE", issues=[
                    StructuralError("a", 0), StructuralError("b", 0),
                ]),
                ImportItemFailure(index=3, class_code=None, issues=[StructuralError("c", 3)]),
            ],
        )
        summary = format_import_summary(result, limit=2)

        lines = summary.splitlines()
        assert lines[0] == "Import failed:"
        assert lines[1] == "#1 [RLE] a"
        assert lines[2] == "#1 [RLE] b"
        assert lines[3] == "...(共 3 条错误)"

    def test_batch_errors_listed(self):
        result = ImportResult(ok=False, errors=[StructuralError("import text is empty")])
        assert "import text is empty" in format_import_summary(result)
