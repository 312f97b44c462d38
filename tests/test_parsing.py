"""Tests for the field parsers.

Covers:
- Alias resolution (exact name, case-insensitive, first present wins)
- Number parsing with currency decorations and fallbacks
- Date parsing, including tz-aware input
- Vehicle-line formatting and half-up rounding
"""

from datetime import datetime

import pytest

from promo_engine.parsing import (
    INCENTIVE_FIELD_ALIASES,
    VEHICLE_FIELD_ALIASES,
    clean_text,
    format_vehicle_line,
    parse_bool,
    parse_date,
    parse_int,
    parse_number,
    resolve_fields,
    round_half_up,
)


class TestResolveFields:

    def test_exact_and_snake_case_columns(self):
        resolved = resolve_fields(
            {"Make": "Honda", "stock_number": "H1", "date_received": "2024-01-01"},
            VEHICLE_FIELD_ALIASES,
        )
        assert resolved["make"] == "Honda"
        assert resolved["stock_number"] == "H1"
        assert resolved["date_received"] == "2024-01-01"
        assert resolved["vin"] is None

    def test_case_insensitive_header(self):
        resolved = resolve_fields({" MAKE ": "Ford", "msrp": "100"}, VEHICLE_FIELD_ALIASES)
        assert resolved["make"] == "Ford"
        assert resolved["msrp"] == "100"

    def test_first_present_alias_wins(self):
        resolved = resolve_fields({"type": "", "incentive_type": "Lease"}, INCENTIVE_FIELD_ALIASES)
        assert resolved["incentive_type"] == "Lease"

        resolved = resolve_fields({"value": 500, "amount": 900}, INCENTIVE_FIELD_ALIASES)
        assert resolved["value"] == 500

    def test_amount_alias(self):
        resolved = resolve_fields({"amount": 900}, INCENTIVE_FIELD_ALIASES)
        assert resolved["value"] == 900


class TestParseNumber:

    @pytest.mark.parametrize("raw,expected", [
        ("25000", 25000),
        ("$25,000", 25000),
        (" 1,234.5 ", 1234.5),
        (42, 42),
        (3.5, 3.5),
    ])
    def test_parses(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "   ", True, float("nan"), float("inf")])
    def test_fallback(self, raw):
        assert parse_number(raw) == 0
        assert parse_number(raw, None) is None

    def test_parse_int_truncates(self):
        assert parse_int("2024") == 2024
        assert parse_int("12.9") == 12
        assert parse_int("n/a") is None


class TestParseDate:

    def test_iso_date(self):
        assert parse_date("2024-02-20") == datetime(2024, 2, 20)

    def test_us_style_date(self):
        assert parse_date("02/20/2024") == datetime(2024, 2, 20)

    def test_tz_aware_converted_to_naive_utc(self):
        assert parse_date("2024-02-20T05:00:00-05:00") == datetime(2024, 2, 20, 10, 0)

    @pytest.mark.parametrize("raw", [None, "", "not a date", 20240220, True])
    def test_unparseable(self, raw):
        assert parse_date(raw) is None


class TestSmallParsers:

    def test_parse_bool(self):
        assert parse_bool("yes") is True
        assert parse_bool("No") is False
        assert parse_bool(1) is True
        assert parse_bool(None) is False
        assert parse_bool("maybe", default=True) is True

    def test_clean_text(self):
        assert clean_text("  Main Lot ") == "Main Lot"
        assert clean_text("   ", "Default") == "Default"
        assert clean_text(None) is None


class TestFormatting:

    def test_vehicle_line(self):
        assert format_vehicle_line(2024, "Honda", "Civic") == "2024 Honda Civic"

    def test_vehicle_line_trims_outer_only(self):
        assert format_vehicle_line(None, "Honda", "Civic") == "Honda Civic"
        assert format_vehicle_line(2024, "Honda", None) == "2024 Honda"
        assert format_vehicle_line(2024, "Land  Rover", "Defender") == "2024 Land  Rover Defender"

    @pytest.mark.parametrize("value,expected", [(52.5, 53), (52.4, 52), (0.5, 1), (2.5, 3), (0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected
