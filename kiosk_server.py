#!/usr/bin/env python3
"""
Сервер обновлений киоска: манифест автообновления и загрузка сборок
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from modules.kiosk_update import KioskUpdateManager, KioskUpdateConfig

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'

logger = logging.getLogger(__name__)


def parse_log_level(name: str) -> int:
    """Числовой уровень по имени; неизвестные имена дают WARNING"""
    level = logging.getLevelName(name.upper())
    if isinstance(level, int):
        return level
    return logging.WARNING


def setup_logging(level: str):
    """Настройка логирования (stderr, уровень из MAX_LOG_LEVEL)"""
    logging.basicConfig(
        level=parse_log_level(level),
        format=LOG_FORMAT,
        stream=sys.stderr
    )


async def run_server(config: KioskUpdateConfig):
    """Запуск сервера обновлений до остановки процесса"""
    manager = KioskUpdateManager(config)

    if not await manager.initialize():
        raise SystemExit(1)

    if not await manager.start():
        raise SystemExit(1)

    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await manager.stop()


def main():
    # Загружаем config.env
    load_dotenv('config.env')

    config = KioskUpdateConfig.from_env()
    setup_logging(config.log_level)

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("🛑 Получен сигнал остановки...")


if __name__ == "__main__":
    main()
