"""
Relevance scoring of canonical books against the user's free-text query.

Queries are often "author + title" in no particular order ("andy weir project
hail mary"), so the author span is detected first and the title is scored
against what remains of the query.
"""

import math
import re
from dataclasses import dataclass
from typing import Iterable

from booksearch.internal.env_settings import Settings
from booksearch.internal.models import CanonicalBook
from booksearch.internal.query_planner import (
    AUTHOR_HEURISTICS,
    AuthorHeuristic,
    is_plausible_author,
)

EXACT_AUTHOR_SCORE = 80
PARTIAL_AUTHOR_SCORE = 60
LAST_NAME_SCORE = 40
WRONG_AUTHOR_PENALTY = -50

EXACT_TITLE_SCORE = 100
TITLE_CONTAINS_QUERY_SCORE = 70
QUERY_CONTAINS_TITLE_SCORE = 50
WORD_OVERLAP_MAX_SCORE = 40
EXACT_WORD_BONUS = 5

# publication years outside (MIN_PLAUSIBLE_YEAR, MAX_PLAUSIBLE_YEAR) get no bonus
MIN_PLAUSIBLE_YEAR = 1800
MAX_PLAUSIBLE_YEAR = 2025

_LEADING_YEAR = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class AuthorSignal:
    detected: str | None
    """Author text found in the query that belongs to one of the book's authors"""
    unmatched_mention: bool
    """The query names somebody who is none of the book's authors"""
    remaining_query: str


def _last_name(name: str) -> str:
    words = name.split()
    return words[-1] if words else ""


class RelevanceRanker:
    def __init__(
        self,
        common_surnames: Iterable[str] | None = None,
        heuristics: tuple[AuthorHeuristic, ...] = AUTHOR_HEURISTICS,
    ):
        if common_surnames is None:
            common_surnames = Settings().ranking.common_surnames
        self.common_surnames = frozenset(s.lower() for s in common_surnames)
        self.heuristics = heuristics

    def _is_distinctive_last_name(self, last_name: str) -> bool:
        return len(last_name) > 3 and last_name not in self.common_surnames

    def _candidate_matches_authors(self, candidate: str, authors: list[str]) -> bool:
        candidate_last = _last_name(candidate)
        for author in authors:
            if candidate in author or author in candidate:
                return True
            if candidate_last == _last_name(author) and self._is_distinctive_last_name(
                candidate_last
            ):
                return True
        return False

    def detect_author(self, book: CanonicalBook, query: str) -> AuthorSignal:
        query_lower = query.lower()
        title_lower = book.title.lower()
        authors = [a.lower() for a in book.authors if a]
        mention_span: str | None = None

        for heuristic in self.heuristics:
            match = heuristic.pattern.search(query_lower)
            if not match or not match.group(1):
                continue
            candidate = match.group(1).strip()
            if not candidate:
                continue
            if self._candidate_matches_authors(candidate, authors):
                return AuthorSignal(
                    detected=candidate,
                    unmatched_mention=False,
                    remaining_query=query_lower.replace(match.group(0), "", 1).strip(),
                )
            # a name-shaped span that is part of the title is title text, not an author
            if (
                mention_span is None
                and is_plausible_author(candidate)
                and candidate not in title_lower
            ):
                mention_span = match.group(0)

        for author in authors:
            if author in query_lower:
                return AuthorSignal(
                    detected=author,
                    unmatched_mention=False,
                    remaining_query=query_lower.replace(author, "", 1).strip(),
                )
            last_name = _last_name(author)
            if self._is_distinctive_last_name(last_name) and last_name in query_lower:
                return AuthorSignal(
                    detected=last_name,
                    unmatched_mention=False,
                    remaining_query=query_lower.replace(last_name, "", 1).strip(),
                )

        if mention_span is not None and authors:
            return AuthorSignal(
                detected=None,
                unmatched_mention=True,
                remaining_query=query_lower.replace(mention_span, "", 1).strip(),
            )

        return AuthorSignal(
            detected=None, unmatched_mention=False, remaining_query=query_lower
        )

    def author_score(self, book: CanonicalBook, signal: AuthorSignal) -> int:
        if signal.unmatched_mention:
            return WRONG_AUTHOR_PENALTY
        detected = signal.detected
        if not detected:
            return 0

        score = 0
        matched = False
        detected_last = _last_name(detected)
        for author in (a.lower() for a in book.authors):
            if author == detected:
                return EXACT_AUTHOR_SCORE
            if detected in author or author in detected:
                score = max(score, PARTIAL_AUTHOR_SCORE)
                matched = True
            elif _last_name(author) == detected_last and len(detected_last) > 3:
                score = max(score, LAST_NAME_SCORE)
                matched = True

        return score if matched else WRONG_AUTHOR_PENALTY

    def title_score(self, title: str, title_query: str) -> float:
        title_lower = title.lower()
        if title_lower == title_query:
            return EXACT_TITLE_SCORE
        if title_query in title_lower:
            return TITLE_CONTAINS_QUERY_SCORE
        if title_lower in title_query:
            return QUERY_CONTAINS_TITLE_SCORE

        query_words = [w for w in title_query.split() if len(w) > 2]
        title_words = [w for w in title_lower.split() if len(w) > 2]
        if not query_words:
            return 0

        fuzzy_matches = [
            word
            for word in query_words
            if any(word in t or t in word for t in title_words)
        ]
        exact_matches = [word for word in query_words if word in title_words]
        return (
            len(fuzzy_matches) / len(query_words) * WORD_OVERLAP_MAX_SCORE
            + len(exact_matches) * EXACT_WORD_BONUS
        )

    @staticmethod
    def quality_score(book: CanonicalBook) -> int:
        score = 0
        if book.page_count and book.page_count > 0:
            score += 3
        edition_date = book.edition_published_date or book.published_date
        if book.original_published_date and book.original_published_date != edition_date:
            score += 2
        if book.thumbnail:
            score += 2
        if book.isbn_13 or book.isbn_10:
            score += 2
        if book.original_published_date:
            year = _LEADING_YEAR.match(book.original_published_date)
            if year and MIN_PLAUSIBLE_YEAR < int(year.group(1)) < MAX_PLAUSIBLE_YEAR:
                score += 1
        return score

    def score(self, book: CanonicalBook, query: str) -> int:
        """Non-negative relevance score; higher is a better match."""
        signal = self.detect_author(book, query)
        title_query = signal.remaining_query or query.lower()

        total = (
            self.author_score(book, signal)
            + self.title_score(book.title, title_query)
            + self.quality_score(book)
        )
        # half-up rounding, floored at zero
        return max(0, math.floor(total + 0.5))

    def rank(self, books: Iterable[CanonicalBook], query: str) -> list[CanonicalBook]:
        """Score every book and sort descending; ties keep their input order."""
        scored = [
            book.model_copy(update={"relevance_score": self.score(book, query)})
            for book in books
        ]
        return sort_by_relevance(scored)


def sort_by_relevance(books: Iterable[CanonicalBook]) -> list[CanonicalBook]:
    return sorted(books, key=lambda book: book.relevance_score or 0, reverse=True)
