"""
Turns a raw query and a search-type hint into a provider-agnostic search intent.

General queries get a best-effort author/title split using an ordered list of
author heuristics, plus a small table of franchise rewrites for sagas whose
titles differ between regions.
"""

import re
from dataclasses import dataclass
from typing import Mapping

from pydantic import BaseModel

from booksearch.internal.models import SearchType
from booksearch.internal.sources.isbn_utils import (
    looks_like_isbn_query,
    normalize_isbn,
)
from booksearch.util.log import logger


@dataclass(frozen=True)
class AuthorHeuristic:
    """
    A named pattern that finds an author-shaped span in a lowercased query.
    Group 1 of the pattern is the candidate author.
    """

    name: str
    pattern: re.Pattern[str]


AUTHOR_HEURISTICS: tuple[AuthorHeuristic, ...] = (
    # "project hail mary by andy weir"
    AuthorHeuristic(
        "by_name", re.compile(r"\bby\s+([a-z.]+(?:\s+[a-z.]+){1,3})\s*$", re.I)
    ),
    # "andy weir project hail mary", "george r. martin"
    AuthorHeuristic(
        "name_run", re.compile(r"\b([a-z]+(?:\s+[a-z]\.?)?\s+[a-z]+)\b", re.I)
    ),
)

_NAME_TOKEN = re.compile(r"^[a-z.]+$", re.I)


@dataclass(frozen=True)
class AuthorMatch:
    heuristic: str
    author: str
    matched_span: str
    remainder: str


def is_plausible_author(candidate: str) -> bool:
    """Author names are 2-4 tokens made of letters and periods."""
    words = candidate.split()
    return 2 <= len(words) <= 4 and all(
        len(word) > 1 and _NAME_TOKEN.match(word) for word in words
    )


def detect_author(
    query: str,
    heuristics: tuple[AuthorHeuristic, ...] = AUTHOR_HEURISTICS,
) -> AuthorMatch | None:
    """Run the heuristics in order against the lowercased query; the first plausible author wins."""
    lowered = query.lower()
    for heuristic in heuristics:
        match = heuristic.pattern.search(lowered)
        if not match or not match.group(1):
            continue
        candidate = match.group(1).strip()
        if not is_plausible_author(candidate):
            continue
        return AuthorMatch(
            heuristic=heuristic.name,
            author=candidate,
            matched_span=match.group(0),
            remainder=lowered.replace(match.group(0), "", 1).strip(),
        )
    return None


@dataclass(frozen=True)
class Franchise:
    trigger: str
    author: str
    titles: Mapping[int, str]


DEFAULT_FRANCHISES: tuple[Franchise, ...] = (
    Franchise(
        trigger="harry potter",
        author="J.K. Rowling",
        titles={
            1: "Harry Potter and the Philosopher's Stone",
            2: "Harry Potter and the Chamber of Secrets",
            3: "Harry Potter and the Prisoner of Azkaban",
            4: "Harry Potter and the Goblet of Fire",
            5: "Harry Potter and the Order of the Phoenix",
            6: "Harry Potter and the Half-Blood Prince",
            7: "Harry Potter and the Deathly Hallows",
        },
    ),
)

_FIRST_NUMBER = re.compile(r"(\d+)")


def match_franchise(
    query: str,
    franchises: tuple[Franchise, ...] = DEFAULT_FRANCHISES,
) -> tuple[str, str] | None:
    """Returns (canonical title, author) when the query names a franchise volume."""
    lowered = query.lower()
    for franchise in franchises:
        if franchise.trigger not in lowered:
            continue
        number = _FIRST_NUMBER.search(lowered)
        if not number:
            continue
        title = franchise.titles.get(int(number.group(1)))
        if title:
            return title, franchise.author
    return None


class SearchIntent(BaseModel, frozen=True):
    raw_query: str
    search_type: SearchType
    title: str | None = None
    author: str | None = None
    isbn: str | None = None
    subject: str | None = None
    free_text: str | None = None
    franchise_match: bool = False

    @property
    def is_structured(self) -> bool:
        return self.free_text is None

    def google_books_query(self) -> str:
        """Render as a Google Books `q` parameter."""
        if self.isbn:
            return f"isbn:{self.isbn}"
        if self.search_type == SearchType.title and self.title:
            return f"intitle:{self.title}"
        if self.search_type == SearchType.author and self.author:
            return f"inauthor:{self.author}"
        if self.subject:
            return f"subject:{self.subject}"
        # general searches keep the raw text: Google ranks free text well
        return self.raw_query.strip()

    def openlibrary_params(self) -> dict[str, str]:
        """Render as Open Library search.json parameters."""
        if self.isbn:
            return {"isbn": self.isbn}
        if self.subject:
            return {"subject": self.subject}
        if self.free_text is not None:
            return {"q": self.free_text}
        params: dict[str, str] = {}
        if self.title:
            params["title"] = self.title
        if self.author:
            params["author"] = self.author
        return params


class QueryPlanner:
    def __init__(
        self,
        heuristics: tuple[AuthorHeuristic, ...] = AUTHOR_HEURISTICS,
        franchises: tuple[Franchise, ...] = DEFAULT_FRANCHISES,
    ):
        self.heuristics = heuristics
        self.franchises = franchises

    def plan(self, query: str, search_type: SearchType | str) -> SearchIntent:
        search_type = SearchType(search_type)
        query = query.strip()

        match search_type:
            case SearchType.isbn:
                return SearchIntent(
                    raw_query=query, search_type=search_type, isbn=normalize_isbn(query)
                )
            case SearchType.title:
                return SearchIntent(raw_query=query, search_type=search_type, title=query)
            case SearchType.author:
                return SearchIntent(
                    raw_query=query, search_type=search_type, author=query
                )
            case SearchType.subject:
                return SearchIntent(
                    raw_query=query, search_type=search_type, subject=query
                )
            case SearchType.general:
                return self._plan_general(query)

    def _plan_general(self, query: str) -> SearchIntent:
        if looks_like_isbn_query(query):
            return SearchIntent(
                raw_query=query,
                search_type=SearchType.general,
                isbn=normalize_isbn(query),
            )

        # checked before the author heuristics: "harry potter 3" reads as a name
        franchise = match_franchise(query, self.franchises)
        if franchise:
            title, author = franchise
            logger.debug("Planned franchise rewrite", query=query, title=title)
            return SearchIntent(
                raw_query=query,
                search_type=SearchType.general,
                title=title,
                author=author,
                franchise_match=True,
            )

        author_match = detect_author(query, self.heuristics)
        if author_match and author_match.remainder:
            logger.debug(
                "Planned author/title split",
                query=query,
                heuristic=author_match.heuristic,
                author=author_match.author,
                title=author_match.remainder,
            )
            return SearchIntent(
                raw_query=query,
                search_type=SearchType.general,
                author=author_match.author,
                title=author_match.remainder,
            )

        return SearchIntent(
            raw_query=query, search_type=SearchType.general, free_text=query
        )
