import logging

from fastapi import FastAPI

from escape_room.api.routes import router
from escape_room.assets.singleton import get_scenarios
from escape_room.assets.startup import init_scenarios_for_app
from escape_room.config import init_settings
from escape_room.core.integrity import init_keyring

app = FastAPI(title="escape-room", version="0.1.0")
app.include_router(router)

settings = init_settings()
# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_scenarios_for_app(settings)
    init_keyring(keys=settings.secret_keys)
    logger.info("Loaded %d scenarios (default=%s)", len(get_scenarios().by_id), settings.default_scenario)


@app.get("/info")
async def info() -> dict[str, object]:
    return {
        "name": app.title,
        "version": app.version,
        "default_scenario": settings.default_scenario,
        "scenarios": sorted(get_scenarios().by_id),
    }
