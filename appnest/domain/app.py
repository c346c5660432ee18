import re
from dataclasses import dataclass
from enum import Enum

from appnest.domain.errors import InvalidAppIdError

APP_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-_]+$")


class AppState(str, Enum):
    UNKNOWN = "unknown"
    INSTALLING = "installing"
    STARTING = "starting"
    READY = "ready"  # running and ready
    STOPPING = "stopping"
    STOPPED = "stopped"
    RESTARTING = "restarting"
    UNINSTALLING = "uninstalling"
    UPDATING = "updating"


@dataclass(frozen=True)
class Transition:
    in_progress: AppState
    target: AppState | None  # None: the controller is discarded afterwards


TRANSITIONS: dict[str, Transition] = {
    "install": Transition(AppState.INSTALLING, AppState.READY),
    "update": Transition(AppState.UPDATING, AppState.READY),
    "start": Transition(AppState.STARTING, AppState.READY),
    "stop": Transition(AppState.STOPPING, AppState.STOPPED),
    "restart": Transition(AppState.RESTARTING, AppState.READY),
    "uninstall": Transition(AppState.UNINSTALLING, None),
}


@dataclass
class UsageRecord:
    name: str
    mem_perc: str  # as reported by the engine, e.g. "12.50%"
    cpu_perc: str


def validate_app_id(app_id: str) -> str:
    if not isinstance(app_id, str) or not APP_ID_PATTERN.match(app_id):
        raise InvalidAppIdError(app_id)
    return app_id
