from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from appnest.domain.errors import AppNotFoundError, EngineError, InvalidAppIdError, ScriptError
from appnest.schemas.app import AppListResponse, AppResponse, UsageResponse
from appnest.services.app_service import AppService

router = APIRouter(prefix="/apps", tags=["apps"])

LIFECYCLE_ACTIONS = ("start", "stop", "restart", "update")


def get_app_service(request: Request) -> AppService:
    return request.app.state.app_service


async def _call(coro):
    try:
        return await coro
    except InvalidAppIdError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AppNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ScriptError, EngineError) as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("", response_model=AppListResponse)
async def list_apps(service: AppService = Depends(get_app_service)):
    apps = await _call(service.list_apps())
    return AppListResponse(apps=[AppResponse.from_app(app) for app in apps])


@router.get("/{app_id}", response_model=AppResponse)
async def get_app(app_id: str, service: AppService = Depends(get_app_service)):
    return AppResponse.from_app(await _call(service.get_app(app_id)))


@router.post("/{app_id}/install", response_model=AppResponse)
async def install_app(app_id: str, service: AppService = Depends(get_app_service)):
    return AppResponse.from_app(await _call(service.install(app_id)))


@router.post("/{app_id}/uninstall", response_model=AppResponse)
async def uninstall_app(app_id: str, service: AppService = Depends(get_app_service)):
    return AppResponse.from_app(await _call(service.uninstall(app_id)))


@router.post("/{app_id}/{action}", response_model=AppResponse)
async def run_lifecycle_action(app_id: str, action: str, service: AppService = Depends(get_app_service)):
    if action not in LIFECYCLE_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")

    app = await _call(service.get_app(app_id))
    await _call(getattr(app, action)())
    return AppResponse.from_app(app)


@router.get("/{app_id}/usage", response_model=UsageResponse)
async def get_usage(app_id: str, service: AppService = Depends(get_app_service)):
    app = await _call(service.get_app(app_id))
    records = await _call(app.get_resource_usage())
    return UsageResponse(
        cpu=await _call(app.get_cpu_usage(records)),
        memory=await _call(app.get_memory_usage(records)),
        disk=await _call(app.get_disk_usage()),
    )


@router.get("/{app_id}/logs", response_class=PlainTextResponse)
async def get_logs(app_id: str, service: AppService = Depends(get_app_service)):
    app = await _call(service.get_app(app_id))
    return await _call(app.get_logs())
