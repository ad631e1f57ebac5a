# src/services/tracking_api/app.py
"""
FastAPI приложение Tracking API.

REST endpoints:
- POST /api/live/location: live-обновление от геодезиста
- GET /api/location/{id}/latest, /api/location/{id}/track: история
- /api/surveyors/...: справочник и статусы
- GET /health, GET /stats

WebSocket endpoints:
- /ws/location/{surveyor_id}: live-подписка на геодезиста
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.common.constants import TypeMsg
from src.common.logger import log_info, log_warning, setup_logging
from src.core.ingest.errors import (
    IdentityMismatchError,
    IngestError,
    InvalidInputError,
    StoreFailureError,
    UnauthorizedError,
)
from src.core.ingest.service import LocationIngestService
from src.core.surveyors.service import UsernameTakenError
from src.core.tracks.repository import PostgresTrackStore
from src.services.realtime_ws.fanout import LocationFanout, Subscription
from src.services.tracking_api import dependencies
from src.services.tracking_api.dependencies import (
    get_database,
    get_fanout,
    get_ingest_service,
    get_redis_client,
    get_relay,
    get_track_store,
)
from src.services.tracking_api.routes import router
from src.shared.models.common import ErrorResponse, HealthStatus

SERVICE_NAME = "tracking_api"
SERVICE_VERSION = "1.0.0"

_STARTED_AT = time.monotonic()

_INGEST_ERROR_STATUS: dict[type[IngestError], int] = {
    UnauthorizedError: 401,
    InvalidInputError: 400,
    IdentityMismatchError: 403,
    StoreFailureError: 503,
}


# === MODELS ===

class StatsResponse(BaseModel):
    """Статистика рассылки, приёма и хранилища."""
    fanout: dict[str, Any]
    ingest: dict[str, Any]
    stored_samples: int
    relay: dict[str, Any] | None = None


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    from src.config import settings
    from src.core.surveyors.repository import SurveyorRepository
    from src.core.surveyors.seed import seed_sample_surveyors
    from src.infra.database import close_db, init_db
    from src.infra.redis_client import close_redis, init_redis

    # Startup
    setup_logging()
    db = await init_db()

    redis = None
    if settings.tracking.REDIS_RELAY_ENABLED:
        redis = await init_redis()

    await dependencies.init_dependencies(
        db,
        redis,
        liveness_window_seconds=settings.presence.LIVENESS_WINDOW_SECONDS,
        enforce_identity=settings.tracking.ENFORCE_SURVEYOR_IDENTITY,
        subscriber_queue_size=settings.tracking.SUBSCRIBER_QUEUE_SIZE,
    )

    if settings.tracking.SEED_SAMPLE_SURVEYORS:
        await seed_sample_surveyors(SurveyorRepository(db))

    await log_info(f"{SERVICE_NAME} запущен", type_msg=TypeMsg.INFO, logger_name=SERVICE_NAME)

    yield

    # Shutdown
    await dependencies.cleanup_dependencies()
    if redis is not None:
        await close_redis()
    await close_db()
    await log_info(f"{SERVICE_NAME} остановлен", type_msg=TypeMsg.INFO, logger_name=SERVICE_NAME)


# === APP ===

app = FastAPI(
    title="Surveyor Tracking API",
    description="Приём live-локаций геодезистов, онлайн-статусы и история треков.",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)
app.include_router(router)


# === ERROR HANDLERS ===

@app.exception_handler(IngestError)
async def ingest_error_handler(request: Request, exc: IngestError) -> JSONResponse:
    status_code = _INGEST_ERROR_STATUS.get(type(exc), 400)
    headers = {"WWW-Authenticate": "Basic"} if status_code == 401 else None
    body = ErrorResponse(error_code=exc.code, message=exc.message)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(UsernameTakenError)
async def username_taken_handler(request: Request, exc: UsernameTakenError) -> JSONResponse:
    body = ErrorResponse(error_code="username_taken", message=str(exc))
    return JSONResponse(status_code=409, content=body.model_dump())


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check(
    db=Depends(get_database),
    redis=Depends(get_redis_client),
) -> HealthStatus:
    """Проверка здоровья сервиса."""
    deps = {"postgres": "healthy" if await db.health_check() else "unhealthy"}
    if redis is None:
        deps["redis"] = "disabled"
    else:
        deps["redis"] = "healthy" if await redis.health_check() else "unhealthy"

    return HealthStatus(
        service=SERVICE_NAME,
        status="healthy" if "unhealthy" not in deps.values() else "degraded",
        version=SERVICE_VERSION,
        uptime_seconds=round(time.monotonic() - _STARTED_AT, 1),
        dependencies=deps,
    )


# === STATS ===

@app.get("/stats", response_model=StatsResponse, tags=["Stats"])
async def get_stats(
    fanout: LocationFanout = Depends(get_fanout),
    ingest: LocationIngestService = Depends(get_ingest_service),
    tracks: PostgresTrackStore = Depends(get_track_store),
) -> StatsResponse:
    """Статистика подписок, приёма и числа сохранённых точек."""
    relay = get_relay()
    return StatsResponse(
        fanout=fanout.get_stats(),
        ingest=ingest.get_stats(),
        stored_samples=await tracks.count(),
        relay=relay.get_stats() if relay is not None else None,
    )


# === WEBSOCKET ENDPOINTS ===

async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    """Пересылать сообщения подписки в сокет до её закрытия."""
    async for payload in subscription:
        await websocket.send_json({"type": "location_update", "data": payload})
    # Подписку сняли (переполнение очереди)
    await websocket.close(code=1013)


@app.websocket("/ws/location/{surveyor_id}")
async def websocket_location(
    websocket: WebSocket,
    surveyor_id: str,
    fanout: LocationFanout = Depends(get_fanout),
) -> None:
    """
    Live-подписка на локацию геодезиста.

    Исходящие сообщения:
    - {"type": "location_update", "data": {...}}
    - {"type": "pong"}

    Входящие сообщения:
    - {"action": "ping"}
    """
    await websocket.accept()
    subscription = fanout.subscribe(surveyor_id)
    sender = asyncio.create_task(_pump(websocket, subscription))

    try:
        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("action") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    except Exception as e:
        # Сокет закрыт со стороны сервера или прислан не-JSON
        await log_warning(f"WebSocket {surveyor_id} закрыт: {e}", logger_name=SERVICE_NAME)
    finally:
        fanout.unsubscribe(subscription)
        sender.cancel()
        try:
            await sender
        except (asyncio.CancelledError, Exception):
            pass


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    from src.config import settings

    uvicorn.run(
        app,
        host=settings.deployment.TRACKING_API_HOST,
        port=settings.deployment.TRACKING_API_PORT,
    )
