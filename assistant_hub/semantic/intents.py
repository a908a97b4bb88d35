# FILE: assistant_hub/semantic/intents.py
"""
Intent catalog - example phrases per adapter, stored in the similarity
service so queries can be matched by meaning instead of keywords.

Each intent is stored as ONE document: its example queries and
"<keyword> app" phrases joined with " | ", followed by a trailing
"[Intent: <app_name>]" tag. The semantic index uses that tag to attribute
search hits back to adapters.

Critical intents are stored eagerly by initialize_intents(); the rest are
stored lazily the first time an adapter with that name is scored. A stored
intent is remembered for LOADED_TTL_S before it is written again.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from assistant_hub.scoring.cache import Clock

logger = logging.getLogger(__name__)


LOADED_TTL_S = 24 * 60 * 60

INTENT_TAG_RE = re.compile(r"\[Intent:\s*([^\]]+?)\s*\]\s*$")


@dataclass(frozen=True)
class IntentDefinition:
    app_name: str
    keywords: List[str] = field(default_factory=list)
    example_queries: List[str] = field(default_factory=list)

    def to_document(self) -> str:
        examples = list(self.example_queries) + [f"{kw} app" for kw in self.keywords]
        return f"{' | '.join(examples)}\n[Intent: {self.app_name}]"


def extract_intent(content: str) -> Optional[str]:
    """Return the intent named by a document's trailing tag, if any."""
    match = INTENT_TAG_RE.search(content or "")
    return match.group(1) if match else None


# =============================================================================
# DEFAULT INTENTS
# =============================================================================

DEFAULT_INTENTS: List[IntentDefinition] = [
    IntentDefinition(
        app_name="streaks",
        keywords=["habit", "habits", "streak", "streaks", "check in", "daily", "routine", "progress", "perfect day"],
        example_queries=[
            "What are my habits?",
            "Show me my streaks",
            "How many days have I done my meditation habit?",
            "What's my longest streak?",
            "Did I check in today?",
            "Show me my daily progress",
            "How many perfect days do I have?",
            "What habits did I complete today?",
            "Tell me about my morning routine streak",
            "What's my current streak for exercise?",
            "Check my gym habit",
            "How long is my gym streak?",
            "track habits not workout advice",
            "habit progress not exercise recommendations",
            "streak status not fitness guidance",
        ],
    ),
    IntentDefinition(
        app_name="notes",
        keywords=["note", "notes", "idea", "ideas", "reminder", "memo", "notebook", "write", "wrote", "save"],
        example_queries=[
            "Show me my notes",
            "What notes do I have?",
            "Find my notes about the meeting",
            "Show me my recent ideas",
            "What did I write yesterday?",
            "Search my notes for project ideas",
            "Show me my saved reminders",
            "What's in my notebook?",
            "Find notes from last week",
            "Count my notes",
            "List my tasks",
            "retrieve notes not note-taking advice",
            "find notes not organization tips",
            "search notes not writing guidance",
        ],
    ),
    IntentDefinition(
        app_name="pomodoro",
        keywords=["pomodoro", "timer", "focus", "work", "break", "session", "productivity", "time", "minutes"],
        example_queries=[
            "Start a pomodoro timer",
            "How much time is left?",
            "Show me my pomodoro stats",
            "How many pomodoros did I complete today?",
            "Take a break",
            "Start a 25 minute focus session",
            "What's my productivity today?",
            "How many work sessions have I done?",
            "Show me my focus time stats",
            "Pause the timer",
        ],
    ),
    IntentDefinition(
        app_name="dog_gallery",
        keywords=["dog", "dogs", "photo", "photos", "picture", "gallery", "cute", "puppy", "favorite"],
        example_queries=[
            "Show me dog photos",
            "Do I have any dog pictures?",
            "Show me my favorite dogs",
            "How many dog photos do I have?",
            "Show me cute puppies",
            "What dogs have I saved?",
            "Show me my dog gallery",
            "Find golden retriever photos",
            "How many favorites do I have in the dog gallery?",
        ],
    ),
    IntentDefinition(
        app_name="nasa_apod",
        keywords=["nasa", "space", "astronomy", "apod", "picture of the day", "cosmos", "universe", "star", "planet"],
        example_queries=[
            "Show me NASA picture of the day",
            "What's today's astronomy picture?",
            "Show me space photos",
            "Do I have any NASA favorites?",
            "What cosmic images have I saved?",
            "Show me the APOD",
            "How many NASA images do I have?",
            "Show me my favorite space photos",
        ],
    ),
]

CRITICAL_INTENTS = ("streaks", "notes", "pomodoro")


# =============================================================================
# CATALOG
# =============================================================================

class IntentCatalog:
    """Tracks which intent documents have been written to the similarity service."""

    def __init__(
        self,
        service: Any,
        definitions: Iterable[IntentDefinition] = None,
        critical: Iterable[str] = CRITICAL_INTENTS,
        clock: Clock = time.time,
    ):
        self._service = service
        self._definitions: Dict[str, IntentDefinition] = {
            d.app_name: d for d in (DEFAULT_INTENTS if definitions is None else definitions)
        }
        self._critical = tuple(critical)
        self._clock = clock
        self._loaded: Dict[str, float] = {}
        self._init_task: Optional[asyncio.Task] = None

    def register(self, definition: IntentDefinition) -> None:
        """Add or replace an intent; it is re-stored on next use."""
        self._definitions[definition.app_name] = definition
        self._loaded.pop(definition.app_name, None)

    def get(self, app_name: str) -> Optional[IntentDefinition]:
        return self._definitions.get(app_name)

    def names(self) -> List[str]:
        return list(self._definitions)

    def is_loaded(self, app_name: str) -> bool:
        stored_at = self._loaded.get(app_name)
        if stored_at is None:
            return False
        if self._clock() - stored_at > LOADED_TTL_S:
            del self._loaded[app_name]
            return False
        return True

    async def initialize_intents(self) -> int:
        """
        Store the critical intents once. Concurrent callers share one run;
        a failed run may be retried by the next caller.
        """
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._store_many(self._critical))
        try:
            return await asyncio.shield(self._init_task)
        except Exception:
            self._init_task = None
            raise

    async def ensure_intent_loaded(self, app_name: str) -> bool:
        if self.is_loaded(app_name):
            return True
        if app_name not in self._definitions:
            return False
        return await self._store_one(app_name)

    async def ensure_intents_loaded(self, app_names: Iterable[str]) -> None:
        await asyncio.gather(*[self.ensure_intent_loaded(n) for n in app_names])

    async def _store_many(self, names: Iterable[str]) -> int:
        stored = 0
        for name in names:
            if self.is_loaded(name) or await self._store_one(name):
                stored += 1
        logger.info(f"[intents] intent system ready ({stored} stored)")
        return stored

    async def _store_one(self, app_name: str) -> bool:
        definition = self._definitions[app_name]
        try:
            await self._service.store(definition.to_document())
        except Exception:
            logger.error(f"[intents] failed to store intent for {app_name}", exc_info=True)
            return False
        self._loaded[app_name] = self._clock()
        logger.debug(f"[intents] stored intent {app_name}")
        return True

    def reset(self) -> None:
        self._loaded.clear()
        self._init_task = None


__all__ = [
    "LOADED_TTL_S",
    "IntentDefinition",
    "DEFAULT_INTENTS",
    "CRITICAL_INTENTS",
    "IntentCatalog",
    "extract_intent",
]
