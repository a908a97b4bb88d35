# FILE: main.py
"""
Assistant Hub - FastAPI Application
Version: 0.1.0

Routes chat utterances between dashboard mini-app adapters and the model:
- Confidence scoring (semantic + keyword + context)
- Direct / merged adapter answers
- Cross-app aggregation ("how many favorites across all my apps?")
- Context injection for the model prompt

Adapters are registered in-process by the host dashboard:
    app.state.hub.registry.register_adapter(NotesAdapter())
"""
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load .env FIRST before any other imports that might need env vars
load_dotenv()

from assistant_hub import __version__
from assistant_hub.routing.router import router as assistant_router
from assistant_hub.services import build_services
from config.settings import get_settings

logging.basicConfig(
    level=getattr(logging, get_settings().log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("assistant_hub")

app = FastAPI(
    title="Assistant Hub",
    version=__version__,
    description="Routes chat utterances to dashboard mini-apps or the model",
)

# ====== CORS ======

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ====== STARTUP ======

@app.on_event("startup")
async def on_startup():
    settings = get_settings()

    if getattr(app.state, "hub", None) is None:
        app.state.hub = build_services()

    logger.info(f"[startup] Similarity service: {settings.similarity_url}")
    if settings.similarity_token:
        logger.info("[startup] HUB_SIMILARITY_TOKEN: [OK] set")
    else:
        logger.info("[startup] HUB_SIMILARITY_TOKEN: [X] NOT SET - requests are unauthenticated")

    healthy = await app.state.hub.start()
    if healthy:
        logger.info("[startup] Semantic scoring: [OK] enabled")
    else:
        logger.warning("[startup] Semantic scoring: [X] DISABLED - keyword and context signals only")

    if os.getenv("HUB_ROUTER_DEBUG", "0") == "1":
        logger.info("[startup] Router debug logging: [OK] enabled")


@app.on_event("shutdown")
def on_shutdown():
    hub = getattr(app.state, "hub", None)
    if hub is not None:
        hub.shutdown()


# ====== ROUTERS ======

app.include_router(assistant_router)


@app.get("/ping")
def ping():
    return {"status": "ok", "version": __version__}
