from typing import List

from pydantic import BaseModel, Field

from appnest.domain.app import AppState


class AppResponse(BaseModel):
    id: str
    state: AppState
    state_confirmed: bool = Field(False, description="False while a transition is running or after one failed")
    state_progress: int = 0

    @classmethod
    def from_app(cls, app) -> "AppResponse":
        return cls(
            id=app.id,
            state=app.state,
            state_confirmed=app.state_confirmed,
            state_progress=app.state_progress,
        )


class AppListResponse(BaseModel):
    apps: List[AppResponse]


class UsageResponse(BaseModel):
    cpu: float = Field(..., description="Summed CPU percentage across containers (unclamped)")
    memory: float = Field(..., description="Approximate memory use in bytes")
    disk: int = Field(..., description="Size of the app data directory in bytes")
