"""
Category/subject normalization.

Providers report genres as free text ("Fiction / Science Fiction / General",
"Science Fiction & Fantasy") and mix in library administration markers. These
helpers split them into atomic genre tokens.
"""

import re
from typing import Iterable, Mapping

# never split, regardless of configuration
PRESERVED_COMPOUND_GENRES = (
    "health & fitness",
    "health & wellness",
    "home & garden",
)

NOISE_TERMS = (
    "accessible book",
    "protected daisy",
    "in library",
    "lending library",
)

DEFAULT_CATEGORY_MAPPINGS: dict[str, str] = {
    "sci-fi": "Science Fiction",
    "scifi": "Science Fiction",
    "science fiction": "Science Fiction",
    "fantasy fiction": "Fantasy",
    "young adult fiction": "Young Adult",
    "ya fiction": "Young Adult",
    "teen fiction": "Young Adult",
    "juvenile fiction": "Children's Fiction",
    "children's books": "Children's Fiction",
    "mystery fiction": "Mystery",
    "detective fiction": "Mystery",
    "suspense": "Thriller",
    "romance fiction": "Romance",
    "love stories": "Romance",
    "historical novel": "Historical Fiction",
    "biography & autobiography": "Biography",
    "biographies": "Biography",
    "autobiography": "Biography",
    "self help": "Self-Help",
    "personal development": "Self-Help",
    "business & economics": "Business",
    "cookbooks": "Cooking",
    "recipes": "Cooking",
    "travel guides": "Travel",
    "computers": "Technology",
    "programming": "Technology",
}

_AND_SPLIT = re.compile(r"\s+and\s+", re.IGNORECASE)


def _is_preserved(category: str) -> bool:
    lowered = category.lower()
    return any(preserved in lowered for preserved in PRESERVED_COMPOUND_GENRES)


def _split_one(category: str, split_commas: bool, split_ampersand: bool) -> list[str]:
    if _is_preserved(category):
        return [category]

    parts = category.split(",") if split_commas else [category]
    parts = [p for part in parts for p in part.split("/")]

    if split_ampersand:
        parts = [p for part in parts for p in part.split("&")]
        parts = [p for part in parts for p in _AND_SPLIT.split(part)]

    return parts


def _is_noise(category: str) -> bool:
    lowered = category.lower()
    return any(term in lowered for term in NOISE_TERMS)


def split_and_clean_categories(
    categories: Iterable[str] | None,
    split_commas: bool = True,
    split_ampersand: bool = True,
) -> list[str]:
    """
    Split raw provider categories into atomic genre tokens.

    Forward slashes always split. Commas and "&"/" and " split only when the
    matching flag is set. Tokens are trimmed, deduplicated case-insensitively
    (first spelling wins) and limited to 3-49 characters.
    """
    if not categories:
        return []

    seen: set[str] = set()
    cleaned: list[str] = []
    for category in categories:
        if not isinstance(category, str):
            continue
        for part in _split_one(category, split_commas, split_ampersand):
            part = " ".join(part.split())
            if not 2 < len(part) < 50 or _is_noise(part):
                continue
            if part.lower() in seen:
                continue
            seen.add(part.lower())
            cleaned.append(part)
    return cleaned


def _title_case(category: str) -> str:
    # str.title() would turn "children's" into "Children'S"
    return " ".join(word[:1].upper() + word[1:] for word in category.split(" "))


def normalize_categories(
    categories: Iterable[str] | None,
    split_commas: bool = True,
    split_ampersand: bool = True,
    mappings: Mapping[str, str] = DEFAULT_CATEGORY_MAPPINGS,
) -> list[str]:
    """Split and clean, then map known variants to a preferred name and title-case the rest."""
    result: list[str] = []
    seen: set[str] = set()
    for category in split_and_clean_categories(
        categories, split_commas=split_commas, split_ampersand=split_ampersand
    ):
        mapped = mappings.get(category.lower())
        name = mapped if mapped else _title_case(category)
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        result.append(name)
    return result


def merge_categories(*category_lists: Iterable[str]) -> list[str]:
    """Union several category lists, deduplicated case-insensitively, order preserved."""
    seen: set[str] = set()
    merged: list[str] = []
    for categories in category_lists:
        for category in categories:
            if category.lower() in seen:
                continue
            seen.add(category.lower())
            merged.append(category)
    return merged
