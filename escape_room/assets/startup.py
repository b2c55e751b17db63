from __future__ import annotations

from pathlib import Path

from escape_room.assets.singleton import init_scenarios
from escape_room.config import Settings


def project_root() -> Path:
    # escape_room/assets/startup.py -> project root
    return Path(__file__).resolve().parents[2]


def init_scenarios_for_app(settings: Settings) -> None:
    init_scenarios(project_root=project_root(), default_id=settings.default_scenario)
