# FILE: assistant_hub/scoring/preprocessor.py
"""
Query Preprocessor for the confidence scorer.

Pipeline:
1. Basic normalization (case, whitespace, quotes, ellipsis, apostrophes, hyphens)
2. Spelling correction from a fixed table: single words first, then the
   multi-word entries against the corrected string
3. Synonym expansion (alternative phrasings, capped at MAX_EXPANSIONS)

Pure and stateless: preprocess() never raises and always returns a
normalized string.

Only `normalized` feeds scoring. `expansions` are reported on the result
and in debug logs; the scorer does not match against them.

Usage:
    from assistant_hub.scoring.preprocessor import QueryPreprocessor

    result = QueryPreprocessor().preprocess("Show my pomadoro  stats")
    result.normalized   # "show my pomodoro stats"
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger(__name__)


MAX_EXPANSIONS = 5
MAX_SUGGESTION_DISTANCE = 2


# =============================================================================
# TABLES
# =============================================================================

# "its" and "were" are real words and are left alone.
CORRECTIONS: Dict[str, str] = {
    # Contractions
    "whats": "what's",
    "dont": "don't",
    "wont": "won't",
    "cant": "can't",
    "didnt": "didn't",
    "doesnt": "doesn't",
    "isnt": "isn't",
    "arent": "aren't",
    "havent": "haven't",
    "hasnt": "hasn't",
    "wouldnt": "wouldn't",
    "couldnt": "couldn't",
    "shouldnt": "shouldn't",
    "youre": "you're",
    "theyre": "they're",
    "thats": "that's",
    "ive": "i've",
    "youve": "you've",
    "weve": "we've",
    "theyve": "they've",

    # Common typos
    "habbit": "habit",
    "habbits": "habits",
    "excersize": "exercise",
    "excercise": "exercise",
    "calender": "calendar",
    "recieve": "receive",
    "acheive": "achieve",
    "beleive": "believe",
    "seperate": "separate",
    "occured": "occurred",
    "untill": "until",
    "wich": "which",
    "teh": "the",
    "taht": "that",
    "nad": "and",
    "adn": "and",
    "waht": "what",
    "wnat": "want",
    "ahve": "have",
    "hvae": "have",
    "todya": "today",
    "tommorow": "tomorrow",
    "tommorrow": "tomorrow",
    "yestarday": "yesterday",
    "minuets": "minutes",
    "mintues": "minutes",

    # App-specific
    "pomadoro": "pomodoro",
    "pomidoro": "pomodoro",
    "pommodoro": "pomodoro",
    "streek": "streak",
    "streks": "streaks",
    "habts": "habits",
    "favroite": "favorite",
    "favourtie": "favorite",
    "picutre": "picture",
    "picutres": "pictures",
    "phoot": "photo",
    "photoes": "photos",

    # Phrases, matched after the word pass
    "pomo doro": "pomodoro",
    "check list": "checklist",
    "to do list": "todo list",
}

SYNONYMS: Dict[str, List[str]] = {
    # General
    "show": ["display", "view", "see", "look at", "check"],
    "get": ["fetch", "retrieve", "find", "show", "display"],
    "list": ["show", "display", "enumerate", "get all"],
    "count": ["how many", "number of", "total", "amount"],
    "create": ["make", "add", "new", "build"],
    "delete": ["remove", "clear", "erase", "destroy"],
    "update": ["change", "modify", "edit", "alter"],

    # Time
    "today": ["today's", "current day", "this day"],
    "yesterday": ["yesterday's", "previous day", "last day"],
    "tomorrow": ["tomorrow's", "next day", "following day"],
    "now": ["current", "present", "at this moment"],
    "recent": ["latest", "newest", "most recent", "last"],

    # App-specific
    "habits": ["routines", "dailies", "daily habits"],
    "streak": ["chain", "consecutive days", "run"],
    "notes": ["memos", "reminders", "ideas", "thoughts"],
    "picture": ["photo", "image", "pic"],
    "pictures": ["photos", "images", "pics", "gallery"],
    "favorite": ["starred", "liked", "saved", "bookmarked"],
    "favorites": ["starred items", "liked items", "saved items"],
    "timer": ["pomodoro", "focus session", "work session"],
    "break": ["rest", "pause", "intermission"],
    "dogs": ["puppies", "pups", "canines"],
    "space": ["cosmos", "universe", "astronomy", "nasa"],
    "how many": ["count", "number of", "total"],
}


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class SpellCorrection:
    original: str
    corrected: str
    distance: int


@dataclass
class PreprocessedQuery:
    """Result of preprocessing one utterance."""
    original: str
    normalized: str
    corrections: List[SpellCorrection] = field(default_factory=list)
    expansions: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.corrections or self.expansions)


# =============================================================================
# HELPERS
# =============================================================================

_WHITESPACE = re.compile(r"\s+")
_APOSTROPHE_SPACING = re.compile(r"\s*'\s*")
_HYPHEN_SPACING = re.compile(r"\s*-\s*")


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insert/delete/substitute = 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j - 1] + cost,
                current[j - 1] + 1,
                previous[j] + 1,
            ))
        previous = current
    return previous[-1]


def normalize_basic(query: str) -> str:
    text = (query or "").lower().strip()
    text = _WHITESPACE.sub(" ", text)
    text = text.replace("‘", "'").replace("’", "'")
    text = text.replace("“", '"').replace("”", '"')
    text = text.replace("…", "...")
    text = _APOSTROPHE_SPACING.sub("'", text)
    text = _HYPHEN_SPACING.sub("-", text)
    return text


# =============================================================================
# PREPROCESSOR
# =============================================================================

class QueryPreprocessor:
    """Normalizes utterances before scoring."""

    def __init__(
        self,
        corrections: Dict[str, str] = None,
        synonyms: Dict[str, List[str]] = None,
        max_expansions: int = MAX_EXPANSIONS,
    ):
        self.corrections = dict(CORRECTIONS if corrections is None else corrections)
        self.synonyms = dict(SYNONYMS if synonyms is None else synonyms)
        self.max_expansions = max_expansions

    def preprocess(self, query: str) -> PreprocessedQuery:
        normalized = normalize_basic(query)

        corrections: List[SpellCorrection] = []
        normalized = self._correct_spelling(normalized, corrections)
        expansions = self._expand_synonyms(normalized)

        result = PreprocessedQuery(
            original=query,
            normalized=normalized,
            corrections=corrections,
            expansions=expansions,
        )
        if result.changed:
            logger.debug(
                "[preprocessor] %r -> %r corrections=%s expansions=%d",
                query,
                normalized,
                [f"{c.original} -> {c.corrected}" for c in corrections],
                len(expansions),
            )
        return result

    def _correct_spelling(self, query: str, corrections: List[SpellCorrection]) -> str:
        words = query.split(" ")
        out = []
        for word in words:
            fixed = self.corrections.get(word)
            if fixed:
                corrections.append(SpellCorrection(
                    original=word,
                    corrected=fixed,
                    distance=levenshtein_distance(word, fixed),
                ))
                out.append(fixed)
            else:
                out.append(word)
        corrected = " ".join(out)

        # Phrase-level entries
        for mistake, fixed in self.corrections.items():
            if " " in mistake and mistake in corrected:
                corrected = corrected.replace(mistake, fixed)
                corrections.append(SpellCorrection(
                    original=mistake,
                    corrected=fixed,
                    distance=levenshtein_distance(mistake, fixed),
                ))
        return corrected

    def _expand_synonyms(self, query: str) -> List[str]:
        expansions: List[str] = []

        for word in query.split(" "):
            for syn in self.synonyms.get(word, ()):
                expanded = re.sub(rf"\b{re.escape(word)}\b", syn, query)
                if expanded != query and expanded not in expansions:
                    expansions.append(expanded)

        for term, syns in self.synonyms.items():
            if " " in term and term in query:
                for syn in syns:
                    expanded = query.replace(term, syn)
                    if expanded != query and expanded not in expansions:
                        expansions.append(expanded)

        return expansions[: self.max_expansions]

    def is_misspelled(self, word: str) -> bool:
        return word.lower() in self.corrections

    def get_suggestions(self, word: str, limit: int = 3) -> List[str]:
        """Known corrections within two edits of `word`, closest first."""
        lower = word.lower()
        scored = []
        for mistake, fixed in self.corrections.items():
            distance = levenshtein_distance(lower, mistake)
            if distance <= MAX_SUGGESTION_DISTANCE:
                scored.append((distance, fixed))
        scored.sort(key=lambda item: item[0])

        suggestions: List[str] = []
        for _, fixed in scored:
            if fixed not in suggestions:
                suggestions.append(fixed)
        return suggestions[:limit]


__all__ = [
    "CORRECTIONS",
    "SYNONYMS",
    "SpellCorrection",
    "PreprocessedQuery",
    "QueryPreprocessor",
    "levenshtein_distance",
    "normalize_basic",
]
