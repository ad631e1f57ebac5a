#!/usr/bin/env python3
# main.py
"""
Главная точка входа сервиса трекинга геодезистов.

Режимы:
- api     : Tracking API (REST + WebSocket)
- init_db : применить схему БД и демо-данные и выйти
"""

from __future__ import annotations

import argparse
import asyncio
import signal

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg
from src.infra.database import init_db, close_db

MODES = ("api", "init_db")

# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_tracking_api() -> None:
    """Запускает Tracking API под uvicorn."""
    import uvicorn

    await log_info(
        f"Запуск Tracking API на порту {settings.deployment.TRACKING_API_PORT}...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.tracking_api.app:app",
        host=settings.deployment.TRACKING_API_HOST,
        port=settings.deployment.TRACKING_API_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )
    server = uvicorn.Server(config)

    serve_task = asyncio.create_task(server.serve())
    stop_task = asyncio.create_task(_shutdown_event.wait()) if _shutdown_event else None
    waiters = {serve_task} | ({stop_task} if stop_task else set())

    done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    if stop_task is not None and stop_task in done:
        await log_info("Tracking API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        server.should_exit = True
        await serve_task
    elif stop_task is not None:
        stop_task.cancel()


async def run_init_db() -> None:
    """Применяет схему и (если включено) демо-данные."""
    from src.core.surveyors.repository import SurveyorRepository
    from src.core.surveyors.seed import seed_sample_surveyors

    db = await init_db()
    try:
        if settings.tracking.SEED_SAMPLE_SURVEYORS:
            added = await seed_sample_surveyors(SurveyorRepository(db))
            await log_info(f"Демо-данные: добавлено {added}", type_msg=TypeMsg.INFO)
    finally:
        await close_db()


async def main(mode: str) -> None:
    """
    Главная функция запуска.

    Args:
        mode: Режим запуска (api, init_db)
    """
    setup_logging()
    setup_signal_handlers()

    await log_info(
        f"{settings.system.PROJECT_NAME} v{settings.system.VERSION}: запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    try:
        if mode == "api":
            await run_tracking_api()
        elif mode == "init_db":
            await run_init_db()
    except Exception as e:
        await log_error(f"Критическая ошибка в режиме '{mode}': {e}", exc_info=True)
        raise


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Surveyor tracking backend")
    parser.add_argument("mode", nargs="?", default="api", choices=MODES)
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    try:
        asyncio.run(main(args.mode))
    except KeyboardInterrupt:
        pass
