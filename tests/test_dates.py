"""Tests for date layout detection and parsing."""

from datetime import date

import pytest

from ledger_import.parsing.dates import (
    DateFormat,
    analyze_date_samples,
    detect_date_format,
    parse_date,
)


class TestAnalyzeDateSamples:
    """Tests for layout detection from column samples."""

    def test_month_first(self):
        """A second component above 12 means month-first."""
        detection = analyze_date_samples(["01/31/2024", "02/15/2024"])
        assert detection.format == DateFormat.MDY
        assert detection.ambiguous is False

    def test_day_first(self):
        detection = analyze_date_samples(["31/01/2024", "15/02/2024"])
        assert detection.format == DateFormat.DMY

    def test_iso(self):
        detection = analyze_date_samples(["2024-01-05", "2024/02/10"])
        assert detection.format == DateFormat.ISO
        assert detection.scores[DateFormat.ISO] == 2
        assert detection.ambiguous is False

    def test_evidence_beats_counts(self):
        """One unambiguous day-first value decides over many ambiguous ones."""
        detection = analyze_date_samples(["01/02/2024", "03/04/2024", "25/04/2024"])
        assert detection.format == DateFormat.DMY

    def test_tie_prefers_month_first_and_flags_ambiguity(self):
        detection = analyze_date_samples(["01/02/2024", "03/04/2024"])
        assert detection.format == DateFormat.MDY
        assert detection.ambiguous is True

    def test_conflicting_evidence_falls_back_to_scores(self):
        detection = analyze_date_samples(["13/01/2024", "01/13/2024"])
        assert detection.scores[DateFormat.MDY] == 1
        assert detection.scores[DateFormat.DMY] == 1
        assert detection.format == DateFormat.MDY
        assert detection.ambiguous is True

    def test_unrecognized_values_default_to_day_first(self):
        detection = analyze_date_samples(["Jan 5", "yesterday"])
        assert detection.format == DateFormat.DMY
        assert detection.ambiguous is True

    def test_no_samples_defaults_to_iso(self):
        detection = analyze_date_samples(["", "  "])
        assert detection.format == DateFormat.ISO
        assert detection.samples == 0

    def test_sample_size_limits_inspection(self):
        values = ["2024-01-01"] * 5 + ["31/01/2024"] * 5
        detection = analyze_date_samples(values, sample_size=5)
        assert detection.samples == 5
        assert detection.format == DateFormat.ISO


class TestDetectDateFormat:
    def test_reads_mapped_column(self):
        rows = [{"When": "31/12/2023"}, {"When": "01/01/2024"}]
        assert detect_date_format(rows, "When") == DateFormat.DMY

    def test_no_column_is_iso(self):
        assert detect_date_format([{"When": "31/12/2023"}], None) == DateFormat.ISO

    def test_no_rows_is_iso(self):
        assert detect_date_format([], "When") == DateFormat.ISO


class TestParseDate:
    """Tests for single-value parsing."""

    @pytest.mark.parametrize(
        "value,fmt,expected",
        [
            ("2024-01-05", DateFormat.ISO, date(2024, 1, 5)),
            ("01/02/2024", DateFormat.MDY, date(2024, 1, 2)),
            ("01/02/2024", DateFormat.DMY, date(2024, 2, 1)),
            ("05.01.2024", DateFormat.DMY, date(2024, 1, 5)),
            ("05/01/24", DateFormat.DMY, date(2024, 1, 5)),
            ("29/02/2024", DateFormat.DMY, date(2024, 2, 29)),
        ],
    )
    def test_known_layouts(self, value, fmt, expected):
        assert parse_date(value, fmt) == expected

    def test_accepts_format_value_string(self):
        assert parse_date("12/31/2023", "MM/DD/YYYY") == date(2023, 12, 31)

    def test_nonexistent_dates_rejected(self):
        assert parse_date("31/04/2024", DateFormat.DMY) is None
        assert parse_date("29/02/2023", DateFormat.DMY) is None

    def test_free_form_fallback(self):
        """Values with fewer than three numbers use the lenient parser."""
        assert parse_date("Jan 5, 2024", DateFormat.ISO) == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["5", "2024", "Mar 2023", "January 5"])
    def test_partial_free_form_dates_rejected(self, value):
        """A value missing its day, month or year is not completed from today."""
        assert parse_date(value, DateFormat.ISO) is None

    @pytest.mark.parametrize("fmt", list(DateFormat))
    def test_oversized_numbers_are_none(self, fmt):
        assert parse_date("1/1/99999999999999999999", fmt) is None
        assert parse_date("99999999999999999999-1-1", fmt) is None

    def test_garbage_is_none(self):
        assert parse_date("garbage", DateFormat.ISO) is None

    def test_empty_is_none(self):
        assert parse_date("", DateFormat.ISO) is None
        assert parse_date("   ", DateFormat.DMY) is None
