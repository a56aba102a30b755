from fastapi import FastAPI
import logging
import os

from app.api.routes import router
from app.assets.startup import init_app_resources
from app.engine_config import max_sessions_from_env
from app.sessions import registry
from app.websocket_hub import notify_session_event

app = FastAPI(title="memory-bomb", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Timer-driven changes (matches, bomb penalty, reloads) reach clients through this listener.
registry.add_listener(notify_session_event)


@app.on_event("startup")
async def _startup() -> None:
    catalog, config = init_app_resources()
    registry.configure(config=config, max_sessions=max_sessions_from_env())
    logger.info(
        "memory-bomb ready: %d symbol sets, reveal delay %d ms, reload delay %d ms",
        len(catalog.sets),
        config.reveal_delay_ms,
        config.reload_delay_ms,
    )


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "memory-bomb", "version": "0.1.0"}
