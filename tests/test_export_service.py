# ============================================================================
# LAYER EXPORT TESTS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Tests - JSON and brief CSV export
# PURPOSE: Verify coordinate rounding, class filtering and CSV escaping
# CREATED: 19 OCT 2026
# ============================================================================
"""
Layer Export Tests

Run with:
    pytest tests/test_export_service.py -v
"""

import json

import pytest

from core.contracts import DrawMode, FeatureKey
from core.models.record import Record
from services.export_service import (
    build_brief_csv,
    csv_escape,
    export_layers_json,
    layer_to_json_text,
)


def _station(id=1, name="Central"):
    return Record(
        id=id,
        mode=DrawMode.POINT,
        class_key=FeatureKey.STATION,
        payload={
            "Type": "Points",
            "Class": "STA",
            "World": 0,
            "stationID": f"S{id}",
            "stationName": name,
            "coordinate": {"x": 1.23456, "z": -0.04},
        },
    )


def _railway(id=2):
    return Record(
        id=id,
        mode=DrawMode.POLYLINE,
        class_key=FeatureKey.RAILWAY,
        payload={
            "Type": "Polyline",
            "Class": "RLE",
            "World": 0,
            "LineID": "L1",
            "LineName": "Main line",
            "PLpoints": [[0.06, -63, 10.04], [5, -63, 5]],
        },
    )


# ============================================================================
# JSON
# ============================================================================

class TestJsonExport:
    """Tests for JSON export."""

    def test_single_layer_rounded(self):
        record = _station(name="中央")
        text = layer_to_json_text(record)

        data = json.loads(text)
        assert len(data) == 1
        assert data[0]["coordinate"] == {"x": 1.2, "z": 0}
        assert "中央" in text
        assert text.startswith("[\n  {")

    def test_payload_not_mutated(self):
        record = _station()
        layer_to_json_text(record)
        assert record.payload["coordinate"] == {"x": 1.23456, "z": -0.04}

    def test_triples_rounded(self):
        data = json.loads(layer_to_json_text(_railway()))
        assert data[0]["PLpoints"] == [[0.1, -63, 10], [5, -63, 5]]

    def test_custom_step(self):
        data = json.loads(layer_to_json_text(_station(), step=0.5))
        assert data[0]["coordinate"] == {"x": 1, "z": 0}

    def test_export_all_and_by_class(self):
        records = [_station(1), _railway(2), _station(3)]

        everything = json.loads(export_layers_json(records))
        assert [d["Class"] for d in everything] == ["STA", "RLE", "STA"]

        stations = json.loads(export_layers_json(records, class_key=FeatureKey.STATION))
        assert [d["stationID"] for d in stations] == ["S1", "S3"]

    def test_empty_payloads_skipped(self):
        blank = Record(id=9, mode=DrawMode.POINT)
        assert json.loads(export_layers_json([blank, _station()]))[0]["stationID"] == "S1"
        assert export_layers_json([]) == "[]"


# ============================================================================
# CSV
# ============================================================================

class TestCsvEscape:
    """Tests for csv_escape."""

    @pytest.mark.parametrize("value,expected", [
        ("plain", "plain"),
        (None, ""),
        (3, "3"),
        ("a,b", '"a,b"'),
        ('say "hi"', '"say ""hi"""'),
        ("two\nlines", '"two\nlines"'),
        ("sep arator", "sep arator"),
    ])
    def test_cells(self, value, expected):
        assert csv_escape(value) == expected


class TestBriefCsv:
    """Tests for build_brief_csv."""

    def test_rows(self):
        text = build_brief_csv([_station(name="Central, North"), _railway()], world_id="zth")

        assert text.startswith("﻿")
        lines = text[1:].split("\r\n")
        assert lines[0] == "Type,Class,World,ID,Name"
        assert lines[1] == 'Points,车站,0,S1,"Central, North"'
        assert lines[2] == "Polyline,铁路,0,L1,Main line"
        assert lines[3] == ""

    def test_without_bom(self):
        text = build_brief_csv([], world_id="zth", bom=False)
        assert text == "Type,Class,World,ID,Name\r\n"

    def test_default_record_falls_back(self):
        drawn = Record(
            id=4,
            mode=DrawMode.POLYGON,
            payload={"type": "polygon", "coords": [{"x": 0, "z": 0}]},
        )
        empty = Record(id=5, mode=DrawMode.POLYLINE)

        lines = build_brief_csv([drawn, empty], world_id="eden", bom=False).split("\r\n")
        assert lines[1] == "polygon,默认,eden,,"
        assert lines[2] == "Line,默认,eden,,"
