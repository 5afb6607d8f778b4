"""Tests for sources/isbn_utils.py: ISBN detection and identifier splitting."""

import pytest

from booksearch.internal.sources.isbn_utils import (
    is_isbn,
    looks_like_isbn_query,
    normalize_isbn,
    split_isbns,
)


class TestIsIsbn:
    @pytest.mark.parametrize(
        "value", ["9780593135204", "978-0-593-13520-4", "0593135202", "080442957X"]
    )
    def test_valid_shapes(self, value):
        assert is_isbn(value)

    @pytest.mark.parametrize("value", ["1234567890123", "12345", "05931352XX", "ocm12345678"])
    def test_invalid_shapes(self, value):
        assert not is_isbn(value)


class TestSplitIsbns:
    def test_mixed_list(self):
        identifiers = ["0593135202", "978-0-593-13520-4", "9780593135211"]
        assert split_isbns(identifiers) == ("9780593135204", "0593135202")

    def test_non_isbn_identifiers_skipped(self):
        # OCLC numbers and other 10/13 character ids share the list
        identifiers = ["ocm1234567", "1234567890123", "0593135202"]
        assert split_isbns(identifiers) == (None, "0593135202")

    def test_empty(self):
        assert split_isbns([]) == (None, None)


def test_normalize_isbn():
    assert normalize_isbn(" 0-8044-2957-x ") == "080442957X"


def test_looks_like_isbn_query():
    assert looks_like_isbn_query("978 0 593 13520 4")
    assert not looks_like_isbn_query("project hail mary")
    assert not looks_like_isbn_query("12345")
