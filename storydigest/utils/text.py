"""Small text helpers shared by the heuristic passes."""

import re

WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9'_-]*", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"\b\d+(?:\.\d+)?\b")

STOPWORDS = frozenset(
    """
    a an the and or but if then else when while of to in on at by for with from into onto
    is are was were be been being am do does did done have has had having it its it's this
    that these those there here we us our you your they them their he she his her i me my
    mine will would should could can may might must shall need needs so also just very
    really like about as than too not no yes please okay ok some any all each every
    what which who whom whose how why where let's lets get got make made want wants
    """.split()
)


def words(text: str) -> list[str]:
    """Lowercased word tokens."""
    return [w.lower().strip("'") for w in WORD_PATTERN.findall(text or "")]


def significant_words(text: str, min_length: int = 4) -> set[str]:
    """Non-stopword tokens of at least min_length characters."""
    return {w for w in words(text) if len(w) >= min_length and w not in STOPWORDS}


def content_words(text: str) -> set[str]:
    """Non-trivial words: non-stopwords of length > 2 that are not bare numbers."""
    return {
        w for w in words(text) if len(w) > 2 and w not in STOPWORDS and not w.isdigit()
    }


def numbers(text: str) -> set[str]:
    """Numeric literals in text."""
    return set(NUMBER_PATTERN.findall(text or ""))


def normalize_text(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    cleaned = re.sub(r"[^\w\s]", " ", (text or "").lower())
    return re.sub(r"\s+", " ", cleaned).strip()


def normalize_title(title: str) -> str:
    """Case/punctuation-normalized title used for topic equality."""
    return normalize_text(title)


def contains_term(text: str, term: str) -> bool:
    """
    Whole-word (optionally pluralized) match of term inside text.

    Multi-word terms match as a phrase.
    """
    if not term:
        return False
    pattern = r"\b" + r"\s+".join(re.escape(part) for part in term.lower().split()) + r"(?:s|es)?\b"
    return re.search(pattern, (text or "").lower()) is not None


def word_count(text: str) -> int:
    """Whitespace-delimited word count."""
    return len((text or "").split())
