# FILE: assistant_hub/routing/router.py
"""
FastAPI routes exposing the routing core to the chat pipeline.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from assistant_hub.routing.schemas import (
    AppInfo,
    AppsResponse,
    ConfidenceRequest,
    ConfidenceResponse,
    HealthResponse,
    RouteRequest,
    RouteResult,
    ScoreItem,
)
from assistant_hub.services import HubServices

router = APIRouter(
    prefix="/assistant",
    tags=["assistant"],
)


def get_hub(request: Request) -> HubServices:
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise HTTPException(status_code=503, detail="Assistant hub not initialised")
    return hub


@router.post("/route", response_model=RouteResult)
async def route_query(req: RouteRequest, hub: HubServices = Depends(get_hub)):
    """Decide how the chat pipeline should answer an utterance."""
    return await hub.router.route_query(req.query)


@router.post("/confidence", response_model=ConfidenceResponse)
async def score_query(req: ConfidenceRequest, hub: HubServices = Depends(get_hub)):
    """Ranked confidence of every registered adapter for a query."""
    normalized = hub.scorer.preprocessor.preprocess(req.query).normalized
    scores = await hub.scorer.score(req.query, weights=req.weights)

    items = []
    for score in scores:
        data = score.to_dict()
        items.append(ScoreItem(
            app_name=data["app_name"],
            display_name=data["display_name"],
            total_score=data["total_score"],
            label=data["label"],
            breakdown=data["breakdown"],
            weights=data["weights"],
            cache_hit=score.metadata.cache_hit,
            explanation=hub.scorer.explain(req.query, score).explanation if req.explain else None,
        ))
    return ConfidenceResponse(query=req.query, normalized=normalized, scores=items)


@router.get("/apps", response_model=AppsResponse)
def list_apps(hub: HubServices = Depends(get_hub)):
    """Current context snapshot of every registered adapter."""
    snapshot = hub.registry.get_all_app_data()
    apps = []
    for name, data in snapshot.apps.items():
        adapter = hub.registry.get_adapter(name)
        apps.append(AppInfo(
            app_name=name,
            display_name=data.display_name,
            icon=data.icon or getattr(adapter, "icon", None),
            is_active=data.is_active,
            last_used=data.last_used,
            summary=data.summary,
            capabilities=data.capabilities,
        ))
    return AppsResponse(apps=apps, active_apps=snapshot.active_apps, last_updated=snapshot.last_updated)


@router.delete("/apps/{app_name}")
def unregister_app(app_name: str, hub: HubServices = Depends(get_hub)):
    if not hub.registry.unregister_adapter(app_name):
        raise HTTPException(status_code=404, detail=f"Unknown app: {app_name}")
    hub.scorer.clear_cache()
    return {"ok": True, "app_name": app_name}


@router.get("/apps/context")
def apps_context(hub: HubServices = Depends(get_hub)):
    """Prompt-ready summary and detailed context blocks."""
    return {
        "summary": hub.registry.get_context_summary(),
        "detailed": hub.registry.get_detailed_context(),
    }


@router.get("/health", response_model=HealthResponse)
async def health(hub: HubServices = Depends(get_hub)):
    stats = await hub.index.get_stats()
    return HealthResponse(
        semantic_healthy=stats["healthy"],
        semantic_count=stats["count"],
        adapters=len(hub.registry),
        score_cache_entries=len(hub.scorer.cache),
        semantic_cache_entries=stats["cached_intents"],
    )
