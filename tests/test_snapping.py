# ============================================================================
# SNAPPING ENGINE TESTS
# ============================================================================
# EPOCH: 1 - FEATURE DIGITIZING
# STATUS: Tests - Grid quantization, assist targets, snap pipeline
# PURPOSE: Verify snap modes, export rounding and assist-line capture
# CREATED: 19 OCT 2026
# ============================================================================
"""
Snapping Engine Tests

Pure functions and small value objects; no mocks needed.

Run with:
    pytest tests/test_snapping.py -v
"""

import math

import pytest

from core.contracts import DrawMode, FeatureKey, GridSnapMode
from core.models.geometry import WorldPoint
from core.models.record import Record
from snapping.assist import (
    AssistLine,
    FixedLineTarget,
    PickedGeometryTarget,
    ReferenceFrameTarget,
    SegmentHit,
    closest_point_on_segment,
    nearest_segment,
)
from snapping.engine import SnapContext, snap
from snapping.grid import (
    GridSnapSettings,
    format_grid_number,
    parse_coord_list,
    parse_half_step_number,
    parse_step_number,
    round_payload_coordinates,
    round_to_step,
    snap_number,
    snap_world_point,
)


def _p(x, z, y=None):
    return WorldPoint(x=x, z=z, y=y)


SAMPLES = [-12.75, -3.5, -1.2, -0.49, -0.1, 0.0, 0.1, 0.49, 0.5, 0.51, 1.2, 3.5, 7.999, 12.75, 622.86]


# ============================================================================
# GRID MODES
# ============================================================================

class TestSnapNumber:
    """Tests for per-coordinate grid quantization."""

    @pytest.mark.parametrize("n", SAMPLES)
    def test_edge_yields_integers(self, n):
        assert float(snap_number(n, GridSnapMode.EDGE)).is_integer()

    @pytest.mark.parametrize("n", SAMPLES)
    def test_center_yields_half_offsets(self, n):
        value = snap_number(n, GridSnapMode.CENTER)
        assert abs(value) - math.floor(abs(value)) == 0.5

    @pytest.mark.parametrize("mode", list(GridSnapMode))
    @pytest.mark.parametrize("n", SAMPLES)
    def test_every_mode_is_idempotent(self, mode, n):
        once = snap_number(n, mode)
        assert snap_number(once, mode) == once

    def test_edge_rounds_to_nearest_integer(self):
        assert snap_number(0.4, GridSnapMode.EDGE) == 0
        assert snap_number(0.5, GridSnapMode.EDGE) == 1
        assert snap_number(1.7, GridSnapMode.EDGE) == 2

    def test_rounding_is_symmetric_around_zero(self):
        assert snap_number(-0.5, GridSnapMode.EDGE) == -1
        assert snap_number(-1.7, GridSnapMode.EDGE) == -2
        assert snap_number(-0.2, GridSnapMode.CENTER) == -0.5

    def test_negative_zero_is_normalized(self):
        value = snap_number(-0.1, GridSnapMode.EDGE)
        assert value == 0
        assert math.copysign(1.0, value) == 1.0

    def test_auto_snaps_to_half_grid(self):
        assert snap_number(0.24, GridSnapMode.AUTO) == 0
        assert snap_number(0.26, GridSnapMode.AUTO) == 0.5
        assert snap_number(1.76, GridSnapMode.AUTO) == 2

    def test_center_of_block(self):
        assert snap_number(3.0, GridSnapMode.CENTER) == 3.5
        assert snap_number(3.9, GridSnapMode.CENTER) == 3.5

    def test_non_finite_passes_through(self):
        assert math.isnan(snap_number(math.nan, GridSnapMode.EDGE))

    def test_world_point_keeps_elevation(self):
        snapped = snap_world_point(_p(0.2, 0.7, y=-63.4), GridSnapMode.EDGE)
        assert snapped.xz() == (0, 1)
        assert snapped.y == -63.4


class TestGridSnapSettings:
    """Tests for the observable grid mode owner."""

    def test_listeners_fire_only_on_change(self):
        settings = GridSnapSettings(mode=GridSnapMode.AUTO)
        seen = []
        settings.subscribe(seen.append)

        assert settings.set_mode(GridSnapMode.EDGE) is True
        assert settings.set_mode(GridSnapMode.EDGE) is False
        assert seen == [GridSnapMode.EDGE]

    def test_unsubscribe_callable(self):
        settings = GridSnapSettings()
        seen = []
        unsubscribe = settings.subscribe(seen.append)
        assert settings.listener_count == 1

        unsubscribe()
        settings.set_mode(GridSnapMode.CENTER)
        assert seen == []
        assert settings.listener_count == 0

    def test_disabled_returns_point_unchanged(self):
        settings = GridSnapSettings(mode=GridSnapMode.EDGE, enabled=False)
        p = _p(0.3, 0.3)
        assert settings.apply(p) is p


# ============================================================================
# EXPORT ROUNDING & MANUAL ENTRY
# ============================================================================

class TestRoundToStep:
    """Tests for export rounding."""

    def test_float_noise_is_removed(self):
        assert round_to_step(-622.8000000000001, 0.1) == -622.8

    @pytest.mark.parametrize("n", SAMPLES + [-622.8000000000001, 1.05, 2.675])
    def test_idempotent(self, n):
        once = round_to_step(n, 0.1)
        assert round_to_step(once, 0.1) == once

    def test_half_rounds_up(self):
        assert round_to_step(1.25, 0.5) == 1.5
        assert round_to_step(0.05, 0.1) == 0.1

    def test_bad_step_returns_input(self):
        assert round_to_step(1.234, 0) == 1.234
        assert round_to_step(1.234, -1) == 1.234

    def test_round_payload_coordinates(self):
        payload = {
            "Class": "ISL",
            "coordinate": {"x": 1.04, "z": -2.06, "y": 64},
            "PLpoints": [[0.04, 64, 1.96], [3.3333, 64, 4]],
            "name": "kept",
        }
        rounded = round_payload_coordinates(payload, 0.1)

        assert rounded["coordinate"] == {"x": 1, "z": -2.1, "y": 64}
        assert rounded["PLpoints"] == [[0, 64, 2], [3.3, 64, 4]]
        assert rounded["name"] == "kept"
        assert payload["coordinate"]["x"] == 1.04


class TestManualEntry:
    """Tests for typed coordinate parsing."""

    def test_on_step_values_parse(self):
        assert parse_step_number("1.2") == 1.2
        assert parse_step_number(" -0.3 ") == -0.3
        assert parse_step_number(5) == 5

    def test_off_step_values_rejected(self):
        assert parse_step_number("1.25") is None
        assert parse_step_number("0.01") is None

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "inf", "nan", True])
    def test_junk_rejected(self, raw):
        assert parse_step_number(raw) is None

    def test_half_step(self):
        assert parse_half_step_number("2.5") == 2.5
        assert parse_half_step_number("2.2") is None

    def test_format_grid_number(self):
        assert format_grid_number(2.0) == "2"
        assert format_grid_number(-0.0) == "0"
        assert format_grid_number(10.5) == "10.5"

    def test_coord_list_two_and_three_values(self):
        assert parse_coord_list(" 1.5,-2 ; 3,64,4.25; ") == [_p(1.5, -2), _p(3, 4.25, y=64)]

    @pytest.mark.parametrize("text", [None, "", " ;; ", "1", "1,2,3,4", "1,x", "nan,0", "0,0;5"])
    def test_coord_list_rejected_whole(self, text):
        assert parse_coord_list(text) is None


# ============================================================================
# ASSIST TARGETS
# ============================================================================

class TestFixedLine:
    """Tests for the fixed-line assist target."""

    def test_capture_within_threshold(self):
        assist = AssistLine(target=FixedLineTarget(axis="x", value=10), threshold=0.5)

        result = assist.transform(_p(10.3, 5))
        assert result.snapped is True
        assert result.point.xz() == (10, 5)
        assert result.distance == pytest.approx(0.3)

    def test_outside_threshold_unchanged(self):
        assist = AssistLine(target=FixedLineTarget(axis="x", value=10), threshold=0.5)

        p = _p(11, 5)
        result = assist.transform(p)
        assert result.snapped is False
        assert result.point == p

    def test_z_axis(self):
        target = FixedLineTarget(axis="z", value=-4)
        result = target.transform(_p(7, -4.8), 1)
        assert result.point.xz() == (7, -4)
        assert result.target_label == "fixed line z = -4"

    def test_user_value_rounded_to_half(self):
        assert FixedLineTarget.from_input("x", 10.3).value == 10.5

    def test_bad_axis(self):
        with pytest.raises(ValueError):
            FixedLineTarget(axis="y", value=0)


class TestReferenceFrame:
    """Tests for the two-axis reference frame."""

    def test_nearer_axis_wins(self):
        target = ReferenceFrameTarget(x_ref=10, z_ref=20)
        result = target.transform(_p(10.4, 20.1), 1)
        assert result.point.xz() == (10.4, 20)
        assert result.target_label.endswith("(z)")

    def test_tie_goes_to_x(self):
        target = ReferenceFrameTarget(x_ref=10, z_ref=20)
        result = target.transform(_p(10.5, 20.5), 1)
        assert result.point.xz() == (10, 20.5)
        assert result.target_label.endswith("(x)")

    def test_neither_axis_in_range(self):
        target = ReferenceFrameTarget(x_ref=0, z_ref=0)
        result = target.transform(_p(5, 8), 1)
        assert result.snapped is False
        assert result.distance == 5


class TestPickedGeometry:
    """Tests for projection onto a picked line or polygon."""

    def test_projects_onto_segment(self):
        target = PickedGeometryTarget.from_rings([[_p(0, 0), _p(10, 0)]], closed=False)
        result = target.transform(_p(5, 0.4, y=3), 1)
        assert result.snapped is True
        assert result.point.xz() == (5, 0)
        assert result.point.y == 3

    def test_projection_clamped_to_endpoint(self):
        q, d = closest_point_on_segment(_p(-3, 4), _p(0, 0), _p(10, 0))
        assert q == (0, 0)
        assert d == 5

    def test_degenerate_segment_uses_endpoint(self):
        q, d = closest_point_on_segment(_p(3, 4), _p(1, 1), _p(1, 1))
        assert q == (1, 1)
        assert d == pytest.approx(math.hypot(2, 3))

    def test_nearest_segment_on_open_ring(self):
        hit = nearest_segment(_p(7, 2), [_p(0, 0), _p(10, 0), _p(10, 10)], closed=False)
        assert hit == SegmentHit(index=0, t=0.7, point=(7, 0), distance=2)

    def test_nearest_segment_closing(self):
        square = [_p(0, 0), _p(10, 0), _p(10, 10), _p(0, 10)]
        hit = nearest_segment(_p(-1, 2.5), square, closed=True)
        assert hit.index == 3
        assert hit.t == 0.75
        assert hit.point == (0, 2.5)

    def test_nearest_segment_needs_two_points(self):
        assert nearest_segment(_p(0, 0), [_p(1, 1)], closed=True) is None

    def test_polygon_includes_closing_segment(self):
        square = [_p(0, 0), _p(10, 0), _p(10, 10), _p(0, 10)]
        closed = PickedGeometryTarget.from_rings([square], closed=True)
        opened = PickedGeometryTarget.from_rings([square], closed=False)

        assert closed.transform(_p(-0.3, 5), 1).point.xz() == (0, 5)
        assert opened.transform(_p(-0.3, 5), 1).snapped is False

    def test_from_record_rejects_points(self):
        record = Record(
            id=1, mode=DrawMode.POINT, coords=[_p(0, 0)], class_key=FeatureKey.STATION,
        )
        with pytest.raises(ValueError):
            PickedGeometryTarget.from_record(record)

    def test_from_polygon_record(self):
        record = Record(
            id=4,
            mode=DrawMode.POLYGON,
            coords=[_p(0, 0), _p(4, 0), _p(4, 4)],
            class_key=FeatureKey.AREA,
        )
        target = PickedGeometryTarget.from_record(record)
        assert target.closed == (True,)
        assert "#4" in target.label


class TestAssistLine:
    """Tests for threshold handling."""

    def test_threshold_rounded_to_half(self):
        assist = AssistLine()
        assist.set_threshold(2.3)
        assert assist.threshold == 2.5

    @pytest.mark.parametrize("bad", [-1, math.inf, math.nan])
    def test_invalid_threshold(self, bad):
        with pytest.raises(ValueError):
            AssistLine().set_threshold(bad)

    def test_disabled_or_empty(self):
        p = _p(10.1, 0)
        assert AssistLine().transform(p).point == p
        disabled = AssistLine(target=FixedLineTarget(axis="x", value=10), enabled=False)
        assert disabled.transform(p).snapped is False


# ============================================================================
# PIPELINE
# ============================================================================

class TestSnapPipeline:
    """Tests for assist-then-grid ordering."""

    def test_no_context_is_identity(self):
        p = _p(0.3, 0.3)
        assert snap(p).point == p

    def test_assist_then_grid(self):
        context = SnapContext(
            grid=GridSnapSettings(mode=GridSnapMode.EDGE),
            assist=AssistLine(target=FixedLineTarget(axis="x", value=10.5), threshold=1),
        )
        result = snap(_p(10.2, 3.4), context)

        assert result.snapped is True
        assert result.point.xz() == (11, 3)

    def test_grid_only(self):
        context = SnapContext(grid=GridSnapSettings(mode=GridSnapMode.CENTER))
        result = snap(_p(2.1, -2.1), context)

        assert result.snapped is False
        assert result.point.xz() == (2.5, -2.5)
