import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appnest.api import apps
from appnest.core.config import get_settings
from appnest.core.database import create_tables, database
from appnest.repositories.app_list_repository import SQLAppListRepository
from appnest.services.app_script import AppScriptRunner
from appnest.services.app_service import AppService
from appnest.services.compose import ComposeFileStore
from appnest.services.docker_runtime import DockerSDKEngine
from appnest.services.usage import PsutilHostInventory

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("appnest")

app_service = AppService(
    SQLAppListRepository(database),
    AppScriptRunner(settings.APP_SCRIPT, settings.DATA_DIR),
    DockerSDKEngine(base_url=settings.DOCKER_BASE_URL),
    ComposeFileStore(),
    PsutilHostInventory(),
    settings,
)


# ---------- Startup / Shutdown ----------

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    await database.connect()
    app.state.app_service = app_service
    logger.info("[STARTUP] Database connected, data dir %s", settings.DATA_DIR)
    yield
    await database.disconnect()
    logger.info("[SHUTDOWN] Database disconnected")


app = FastAPI(title="appnest – App Lifecycle Manager", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(apps.router)
