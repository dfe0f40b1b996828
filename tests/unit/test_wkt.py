"""Tests for the WKT and EWKT codecs."""

from __future__ import annotations

import pytest

from geofiddle.core.exceptions import FormatterError
from geofiddle.formats.wkt import (
    detect_ewkt,
    detect_wkt,
    format_ewkt,
    format_wkt,
    parse_ewkt,
    parse_wkt,
    srid_for_options,
)
from geofiddle.models.feature import Feature, FormatOptions
from geofiddle.models.geometry import (
    GeometryCollection,
    LineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from geofiddle.projections.definitions import SupportedProjection


class TestParseWkt:
    """parse_wkt: block splitting and per-block errors."""

    def test_point(self) -> None:
        result = parse_wkt("POINT (30 10)")
        assert result.ok
        assert result.detected_format == "wkt"
        assert result.features[0].geometry == Point((30.0, 10.0))

    def test_point_with_z(self) -> None:
        result = parse_wkt("POINT Z (1 2 3)")
        assert result.features[0].geometry == Point((1.0, 2.0, 3.0))

    def test_polygon_with_hole(self) -> None:
        text = "POLYGON ((0 0, 10 0, 10 10, 0 10, 0 0), (2 2, 4 2, 4 4, 2 4, 2 2))"
        geometry = parse_wkt(text).features[0].geometry
        assert isinstance(geometry, Polygon)
        assert len(geometry.coordinates) == 2

    def test_multipolygon(self) -> None:
        text = "MULTIPOLYGON (((0 0, 1 0, 1 1, 0 0)), ((5 5, 6 5, 6 6, 5 5)))"
        geometry = parse_wkt(text).features[0].geometry
        assert isinstance(geometry, MultiPolygon)
        assert len(geometry.coordinates) == 2

    def test_geometry_collection(self) -> None:
        text = "GEOMETRYCOLLECTION (POINT (1 2), LINESTRING (0 0, 1 1))"
        geometry = parse_wkt(text).features[0].geometry
        assert isinstance(geometry, GeometryCollection)
        assert isinstance(geometry.geometries[1], LineString)

    def test_blank_line_separates_blocks(self) -> None:
        result = parse_wkt("POINT (1 2)\n\nLINESTRING (0 0, 1 1)\n   \nPOINT (3 4)")
        assert len(result.features) == 3
        assert [f.id for f in result.features] == ["feature-0", "feature-1", "feature-2"]

    def test_bad_block_does_not_abort_others(self) -> None:
        result = parse_wkt("POINT (1 2)\n\nPOINT (oops)\n\nPOINT (3 4)")
        assert len(result.features) == 2
        assert len(result.errors) == 1
        assert "block 2" in result.errors[0].message

    def test_empty_geometry_is_block_error(self) -> None:
        result = parse_wkt("POINT EMPTY")
        assert result.features == ()
        assert result.errors[0].message == "Failed to parse WKT at block 1"

    def test_lowercase_keywords(self) -> None:
        assert parse_wkt("point (1 2)").features[0].geometry == Point((1.0, 2.0))

    def test_empty_input(self) -> None:
        result = parse_wkt("")
        assert result.features == ()
        assert result.errors == ()


class TestFormatWkt:
    """format_wkt output."""

    def test_point(self) -> None:
        assert format_wkt([Feature(id="a", geometry=Point((1.0, 2.0)))]) == "POINT (1 2)"

    def test_blocks_separated_by_blank_line(self) -> None:
        features = [
            Feature(id="a", geometry=Point((1.0, 2.0))),
            Feature(id="b", geometry=LineString(((0.0, 0.0), (1.5, 1.0)))),
        ]
        assert format_wkt(features) == "POINT (1 2)\n\nLINESTRING (0 0, 1.5 1)"

    def test_shortest_number_form(self) -> None:
        feature = Feature(id="a", geometry=Point((-0.1276, 51.5072)))
        assert format_wkt([feature]) == "POINT (-0.1276 51.5072)"

    def test_z_keyword(self) -> None:
        features = [
            Feature(id="a", geometry=Point((1.0, 2.0, 3.0))),
            Feature(id="b", geometry=LineString(((0.0, 0.0), (1.0, 1.0)))),
        ]
        assert format_wkt(features) == "POINT Z (1 2 3)\n\nLINESTRING (0 0, 1 1)"

    def test_multi_and_collection_keywords(self) -> None:
        features = [
            Feature(id="a", geometry=MultiPoint(((1.0, 2.0), (3.0, 4.0)))),
            Feature(
                id="b",
                geometry=MultiPolygon(
                    ((((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0)),),)
                ),
            ),
            Feature(
                id="c",
                geometry=GeometryCollection((Point((1.0, 2.0)), GeometryCollection(()))),
            ),
        ]
        assert format_wkt(features).split("\n\n") == [
            "MULTIPOINT ((1 2), (3 4))",
            "MULTIPOLYGON (((0 0, 1 0, 1 1, 0 0)))",
            "GEOMETRYCOLLECTION (POINT (1 2), GEOMETRYCOLLECTION EMPTY)",
        ]

    def test_multi_output_reparses(self) -> None:
        geometry = MultiPoint(((1.0, 2.0), (3.0, 4.0)))
        text = format_wkt([Feature(id="a", geometry=geometry)])
        assert parse_wkt(text).features[0].geometry == geometry

    def test_null_geometry_skipped(self) -> None:
        assert format_wkt([Feature(id="a", geometry=None)]) == ""

    def test_round_trip(self, sample_features: tuple[Feature, ...]) -> None:
        text = format_wkt(sample_features)
        reparsed = parse_wkt(text)
        assert [f.geometry for f in reparsed.features] == [f.geometry for f in sample_features]

    def test_unbuildable_geometry_raises(self) -> None:
        bad = Feature(id="a", geometry=Polygon((((0.0, 0.0), (1.0, 1.0)),)))
        with pytest.raises(FormatterError):
            format_wkt([bad])


class TestEwkt:
    """EWKT SRID prefix handling."""

    @pytest.mark.parametrize(
        ("srid", "projection"),
        [
            (4326, SupportedProjection.WGS84),
            (3857, SupportedProjection.WEB_MERCATOR),
            (27700, SupportedProjection.BNG),
        ],
    )
    def test_known_srid_sets_projection(self, srid: int, projection: SupportedProjection) -> None:
        result = parse_ewkt(f"SRID={srid};POINT (1 2)")
        assert result.detected_format == "ewkt"
        assert result.detected_projection is projection
        assert result.features[0].geometry == Point((1.0, 2.0))

    def test_unknown_srid_leaves_projection_undetected(self) -> None:
        result = parse_ewkt("SRID=2154;POINT (700000 6600000)")
        assert result.ok
        assert result.detected_projection is None

    def test_prefix_is_case_insensitive(self) -> None:
        assert parse_ewkt("srid=27700;POINT (1 2)").detected_projection is SupportedProjection.BNG

    def test_format_uses_option_projection(self) -> None:
        features = [Feature(id="a", geometry=Point((530000.0, 180000.0)))]
        text = format_ewkt(features, FormatOptions(projection="EPSG:27700"))
        assert text == "SRID=27700;POINT (530000 180000)"

    def test_format_defaults_to_4326(self) -> None:
        features = [Feature(id="a", geometry=Point((1.0, 2.0)))]
        assert format_ewkt(features) == "SRID=4326;POINT (1 2)"

    def test_every_block_prefixed(self) -> None:
        features = [
            Feature(id="a", geometry=Point((1.0, 2.0))),
            Feature(id="b", geometry=Point((3.0, 4.0))),
        ]
        assert format_ewkt(features).split("\n\n") == [
            "SRID=4326;POINT (1 2)",
            "SRID=4326;POINT (3 4)",
        ]

    def test_multi_block_output_reparses(self) -> None:
        features = [
            Feature(id="a", geometry=Point((0.0, 1.0))),
            Feature(id="b", geometry=Point((2.0, 3.0))),
        ]
        text = format_ewkt(features, FormatOptions(projection="EPSG:27700"))
        result = parse_ewkt(text)
        assert result.ok
        assert result.detected_projection is SupportedProjection.BNG
        assert [f.geometry for f in result.features] == [f.geometry for f in features]

    def test_later_block_without_prefix(self) -> None:
        result = parse_ewkt("SRID=3857;POINT (1 2)\n\nPOINT (3 4)")
        assert len(result.features) == 2
        assert result.detected_projection is SupportedProjection.WEB_MERCATOR

    def test_later_block_srid_does_not_override_first(self) -> None:
        result = parse_ewkt("SRID=27700;POINT (1 2)\n\nSRID=4326;POINT (3 4)")
        assert result.ok
        assert result.detected_projection is SupportedProjection.BNG

    @pytest.mark.parametrize("text", ["SRID=4326;", "SRID=4326;   "])
    def test_prefix_without_geometry_is_error(self, text: str) -> None:
        result = parse_ewkt(text)
        assert result.features == ()
        assert result.errors[0].message == "No geometry found"
        assert result.detected_format == "ewkt"

    def test_srid_for_unknown_projection_falls_back(self) -> None:
        assert srid_for_options(FormatOptions(projection="EPSG:9999")) == 4326


class TestDetection:
    """detect_wkt / detect_ewkt."""

    @pytest.mark.parametrize(
        "text",
        [
            "POINT (1 2)",
            "  linestring (0 0, 1 1)",
            "MULTIPOLYGON EMPTY",
            "GEOMETRYCOLLECTION EMPTY",
        ],
    )
    def test_wkt_keywords(self, text: str) -> None:
        assert detect_wkt(text) is True

    def test_wkt_rejects_ewkt_and_numbers(self) -> None:
        assert detect_wkt("SRID=4326;POINT (1 2)") is False
        assert detect_wkt("1,2") is False

    def test_ewkt_prefix(self) -> None:
        assert detect_ewkt("SRID=3857;POINT (1 2)") is True
        assert detect_ewkt("POINT (1 2)") is False
        assert detect_ewkt("SRID=abc;POINT (1 2)") is False
