"""
ISBN normalization and detection utilities.
Providers report ISBNs in mixed lists and with inconsistent punctuation.
"""

import re
from typing import Iterable

_ISBN_QUERY = re.compile(r"^[\d\-\s]{10,17}$")


def normalize_isbn(isbn: str) -> str:
    """Remove hyphens and spaces from ISBN."""
    return isbn.replace("-", "").replace(" ", "").strip().upper()


def is_isbn(value: str) -> bool:
    """Check if value looks like an ISBN (10 or 13 digits)."""
    clean = normalize_isbn(value)
    if len(clean) == 10:
        return clean[:-1].isdigit() and (clean[-1].isdigit() or clean[-1] == "X")
    elif len(clean) == 13:
        return clean.isdigit() and clean.startswith(("978", "979"))
    return False


def looks_like_isbn_query(query: str) -> bool:
    """A free-text query made only of digits, hyphens and spaces, 10-17 chars long."""
    return bool(_ISBN_QUERY.match(query.strip()))


def split_isbns(identifiers: Iterable[str]) -> tuple[str | None, str | None]:
    """
    Pick the first ISBN-13 and the first ISBN-10 out of a mixed identifier list.

    Returns:
        Tuple of (isbn_13, isbn_10), either may be None
    """
    isbn_13 = None
    isbn_10 = None
    for identifier in identifiers:
        clean = normalize_isbn(identifier)
        if not is_isbn(clean):
            continue
        if len(clean) == 13 and isbn_13 is None:
            isbn_13 = clean
        elif len(clean) == 10 and isbn_10 is None:
            isbn_10 = clean
    return isbn_13, isbn_10
