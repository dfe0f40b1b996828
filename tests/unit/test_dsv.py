"""Tests for the numeric tokenizer and the CSV/DSV codec.

Covers:
- Delimiter set and numeric parsing
- Per-line classification (Point / LineString / Polygon)
- Per-line errors with partial success
- Formatting and detection
"""

from __future__ import annotations

import pytest

from geofiddle.formats._tokenizer import TokenizeError, parse_dsv, parse_number, split_tokens
from geofiddle.formats.dsv import detect_csv, format_csv, parse_csv
from geofiddle.models.feature import Feature
from geofiddle.models.geometry import LineString, MultiPoint, Point, Polygon


class TestTokenizer:
    """split_tokens / parse_number / parse_dsv."""

    @pytest.mark.parametrize(
        "text",
        ["1,2", "1;2", "1|2", "1\t2", "1 2", "1#2", "1&2", "1\\2", "1:2", "1/2", "1 , ; 2"],
    )
    def test_every_delimiter_splits(self, text: str) -> None:
        assert parse_dsv(text) == [1.0, 2.0]

    def test_empty_tokens_dropped(self) -> None:
        assert split_tokens(" ,,1,,2,, ") == ["1", "2"]

    def test_scientific_and_negative(self) -> None:
        assert parse_dsv("-1.5e3,2E-2") == [-1500.0, 0.02]

    @pytest.mark.parametrize("token", ["abc", "nan", "inf", "-inf", "1_000", "1.2.3"])
    def test_rejects_non_finite_or_garbage(self, token: str) -> None:
        with pytest.raises(TokenizeError, match="Invalid number"):
            parse_number(token)

    def test_error_carries_token(self) -> None:
        with pytest.raises(TokenizeError) as ctx:
            parse_dsv("1,x")
        assert ctx.value.token == "x"


class TestParseCsv:
    """parse_csv classification and error policy."""

    def test_single_pair_is_point(self) -> None:
        result = parse_csv("-0.1276,51.5072")
        assert result.ok
        assert result.detected_format == "csv"
        assert result.features[0].geometry == Point((-0.1276, 51.5072))

    def test_open_sequence_is_linestring(self) -> None:
        result = parse_csv("0,0,1,1,2,2")
        assert result.features[0].geometry == LineString(((0.0, 0.0), (1.0, 1.0), (2.0, 2.0)))

    def test_closed_ring_of_four_pairs_is_polygon(self) -> None:
        result = parse_csv("0,0 1,0 1,1 0,0")
        geometry = result.features[0].geometry
        assert isinstance(geometry, Polygon)
        assert geometry.coordinates[0][0] == geometry.coordinates[0][-1]

    def test_closed_ring_of_three_pairs_stays_linestring(self) -> None:
        result = parse_csv("0,0 1,1 0,0")
        assert isinstance(result.features[0].geometry, LineString)

    def test_one_feature_per_line(self) -> None:
        result = parse_csv("1,2\n3,4\n\n5,6,7,8")
        assert [f.id for f in result.features] == ["feature-0", "feature-1", "feature-2"]
        assert isinstance(result.features[2].geometry, LineString)

    def test_no_swap_of_large_first_value(self) -> None:
        result = parse_csv("530000,180000")
        assert result.features[0].geometry == Point((530000.0, 180000.0))

    def test_odd_count_is_line_error(self) -> None:
        result = parse_csv("1,2\n1,2,3\n4,5")
        assert len(result.features) == 2
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.line == 2
        assert error.message.startswith("Line 2: Odd number of coordinates")

    def test_bad_token_is_line_error(self) -> None:
        result = parse_csv("1,2\nfoo,3")
        assert len(result.features) == 1
        assert result.errors[0].message == "Line 2: Invalid number: foo"
        assert result.errors[0].line == 2

    def test_empty_input(self) -> None:
        result = parse_csv("   ")
        assert result.features == ()
        assert result.errors == ()

    def test_only_delimiters_reports_no_coordinates(self) -> None:
        result = parse_csv(",,,")
        assert result.features == ()
        assert result.errors[0].message == "No coordinates found in input"


class TestFormatCsv:
    """format_csv output."""

    def test_point(self) -> None:
        assert format_csv([Feature(id="a", geometry=Point((1.0, 2.5)))]) == "1,2.5"

    def test_line_flattened_and_z_dropped(self) -> None:
        feature = Feature(id="a", geometry=LineString(((1.0, 2.0, 9.0), (3.0, 4.0, 9.0))))
        assert format_csv([feature]) == "1,2,3,4"

    def test_one_line_per_feature(self) -> None:
        features = [
            Feature(id="a", geometry=Point((1.0, 2.0))),
            Feature(id="b", geometry=MultiPoint(((3.0, 4.0), (5.0, 6.0)))),
        ]
        assert format_csv(features) == "1,2\n3,4,5,6"

    def test_round_trip(self) -> None:
        text = "0,0,1,0,1,1,0,0\n5,6"
        assert format_csv(parse_csv(text).features) == text


class TestDetectCsv:
    """detect_csv heuristics."""

    @pytest.mark.parametrize("text", ["1,2", "1 2\n3 4", "530000;180000", "1,2,3,4"])
    def test_accepts_numeric_pairs(self, text: str) -> None:
        assert detect_csv(text) is True

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "1",
            "1,2,3",
            "{\"a\": 1}",
            "[1, 2]",
            "<kml/>",
            "POINT (1 2)",
            "SRID=4326;POINT (1 2)",
            "hello,world",
        ],
    )
    def test_rejects_non_csv(self, text: str) -> None:
        assert detect_csv(text) is False
