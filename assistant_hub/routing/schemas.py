# FILE: assistant_hub/routing/schemas.py
"""
Pydantic models for routing results and the HTTP surface.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RouteMode(str, Enum):
    """How the chat pipeline should answer an utterance."""
    DIRECT = "direct"          # One adapter answered
    MERGED = "merged"          # Several adapters answered, labelled and joined
    AGGREGATE = "aggregate"    # Cross-app totals rendered by the aggregator
    CONTEXT = "context"        # Model call with an adapter summary spliced in
    NONE = "none"              # Plain model call


class RouteResult(BaseModel):
    """Routing decision returned to the chat pipeline."""
    mode: RouteMode = Field(default=RouteMode.NONE, description="Routing mode")
    text: Optional[str] = Field(default=None, description="Answer text for direct/merged/aggregate")
    context_addendum: Optional[str] = Field(default=None, description="Extra system-prompt context for 'context' mode")
    source_adapters: List[str] = Field(default_factory=list, description="app_name of every adapter that contributed")
    confidence: Optional[float] = Field(default=None, description="Clamped confidence of the deciding adapter")


class RouteRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Raw user utterance")


class ConfidenceRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Raw user utterance")
    weights: Optional[Dict[str, float]] = Field(default=None, description="Override semantic/keyword/context weights")
    explain: bool = Field(default=False, description="Include a per-factor explanation for each adapter")


class ScoreItem(BaseModel):
    app_name: str
    display_name: str
    total_score: float
    label: str
    breakdown: Dict[str, float]
    weights: Dict[str, float]
    cache_hit: bool = False
    explanation: Optional[str] = None


class ConfidenceResponse(BaseModel):
    query: str
    normalized: str
    scores: List[ScoreItem] = Field(default_factory=list)


class AppInfo(BaseModel):
    app_name: str
    display_name: str
    icon: Optional[str] = None
    is_active: bool = False
    last_used: int = 0
    summary: str = ""
    capabilities: List[str] = Field(default_factory=list)


class AppsResponse(BaseModel):
    apps: List[AppInfo] = Field(default_factory=list)
    active_apps: List[str] = Field(default_factory=list)
    last_updated: int = 0


class HealthResponse(BaseModel):
    semantic_healthy: bool
    semantic_count: int = 0
    adapters: int = 0
    score_cache_entries: int = 0
    semantic_cache_entries: int = 0
