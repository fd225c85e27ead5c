"""Tests for the delimited text tokenizer."""

import pytest

from ledger_import.parsing.tokenizer import ParsedTable, split_line, tokenize


class TestSplitLine:
    """Tests for single-line splitting."""

    def test_plain_fields(self):
        assert split_line("a,b,c") == ["a", "b", "c"]

    def test_empty_fields_are_kept(self):
        """Consecutive delimiters produce empty values, not a shifted row."""
        assert split_line("a,,c") == ["a", "", "c"]
        assert split_line(",b,") == ["", "b", ""]

    def test_quoted_field_with_delimiter(self):
        assert split_line('"Smith, J",42') == ["Smith, J", "42"]

    def test_doubled_quote_is_literal(self):
        assert split_line('"He said ""hi""",x') == ['He said "hi"', "x"]

    def test_text_after_closing_quote_is_kept(self):
        assert split_line('"abc"def,x') == ["abcdef", "x"]
        assert split_line('"Smith, J" Jr;7', ";") == ["Smith, J Jr", "7"]

    def test_values_are_stripped(self):
        assert split_line("  a , b  ") == ["a", "b"]

    def test_semicolon_delimiter(self):
        assert split_line("1,50;EUR", ";") == ["1,50", "EUR"]

    def test_blank_line_gives_nothing(self):
        assert split_line("   ") == []


class TestTokenize:
    """Tests for whole-file tokenizing."""

    def test_basic_file(self):
        """Header row plus data rows keyed by header."""
        text = "Date,Description,Amount\n2023-01-05,Coffee,-4.50\n2023-01-06,Salary,2000.00"
        table = tokenize(text)

        assert table.headers == ["Date", "Description", "Amount"]
        assert len(table.rows) == 2
        assert table.rows[0] == {"Date": "2023-01-05", "Description": "Coffee", "Amount": "-4.50"}

    def test_crlf_and_blank_lines(self):
        text = "A,B\r\n1,2\r\n\r\n3,4\r\n"
        table = tokenize(text)

        assert table.rows == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]

    def test_leading_blank_lines_before_header(self):
        table = tokenize("\n\nA,B\n1,2")
        assert table.headers == ["A", "B"]

    def test_missing_trailing_values_are_empty(self):
        """Every row has exactly one key per header."""
        table = tokenize("A,B,C\n1")
        assert table.rows == [{"A": "1", "B": "", "C": ""}]

    def test_surplus_values_are_dropped(self):
        table = tokenize("A,B\n1,2,3")
        assert table.rows == [{"A": "1", "B": "2"}]

    def test_quoted_headers(self):
        table = tokenize('"Date","Amount"\n2024-01-01,5')
        assert table.headers == ["Date", "Amount"]

    def test_byte_order_mark_is_ignored(self):
        table = tokenize("\ufeffDate,Amount\n2024-01-01,5")
        assert table.headers[0] == "Date"

    def test_semicolon_file(self):
        table = tokenize("Datum;Betrag\n05.01.2024;-4,50", ";")
        assert table.rows == [{"Datum": "05.01.2024", "Betrag": "-4,50"}]

    def test_empty_text(self):
        assert tokenize("") == ParsedTable()
        assert tokenize("\n  \n") == ParsedTable()

    def test_header_only(self):
        table = tokenize("A,B\n")
        assert table.headers == ["A", "B"]
        assert table.rows == []

    def test_multi_character_delimiter_rejected(self):
        with pytest.raises(ValueError):
            tokenize("A;;B", ";;")

    def test_empty_delimiter_rejected(self):
        with pytest.raises(ValueError):
            tokenize("A,B", "")
