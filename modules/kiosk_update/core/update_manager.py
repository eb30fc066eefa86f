"""
Kiosk Update Manager - основной координатор Kiosk Update Module
"""

import time
import logging
from pathlib import Path
from typing import Dict, Any, Optional

from ..config import KioskUpdateConfig
from .types import ServiceStatus, VersionManifest
from ..providers.filesystem_provider import FilesystemProvider
from ..providers.version_provider import VersionCatalog
from ..providers.manifest_provider import ManifestResolver
from ..providers.publish_provider import PublishProvider
from ..providers.update_server_provider import UpdateServerProvider

logger = logging.getLogger(__name__)


class KioskUpdateManager:
    """Основной координатор Kiosk Update Module"""

    def __init__(self, config: Optional[KioskUpdateConfig] = None):
        self.config = config or KioskUpdateConfig()

        # Провайдеры
        self.filesystem_provider = None
        self.version_catalog = None
        self.manifest_resolver = None
        self.publish_provider = None
        self.update_server_provider = None

        self.status = ServiceStatus.UNINITIALIZED
        self.is_initialized = False
        self.is_running = False
        self.start_time = None

    async def initialize(self) -> bool:
        """Инициализация модуля"""
        logger.info("🔧 Инициализация KioskUpdateManager...")

        if not self.config.is_valid():
            logger.error("❌ Неверная конфигурация Kiosk Update Module")
            self.status = ServiceStatus.ERROR
            return False

        if not Path(self.config.kiosk_directory).is_dir():
            # Не фатально: GET /latest-version ответит 500, пока папка не появится
            logger.warning(f"⚠️ Директория версий не найдена: {self.config.kiosk_directory}")

        await self._initialize_providers()

        self.is_initialized = True
        self.status = ServiceStatus.READY
        logger.info("✅ KioskUpdateManager инициализирован")
        return True

    async def _initialize_providers(self):
        """Инициализация всех провайдеров"""
        self.filesystem_provider = FilesystemProvider(self.config)
        self.version_catalog = VersionCatalog(self.config, self.filesystem_provider)
        self.manifest_resolver = ManifestResolver(
            self.config,
            catalog=self.version_catalog,
            filesystem=self.filesystem_provider
        )
        self.publish_provider = PublishProvider(
            self.config,
            catalog=self.version_catalog,
            filesystem=self.filesystem_provider
        )
        self.update_server_provider = UpdateServerProvider(
            self.config,
            self.manifest_resolver,
            self.publish_provider
        )

        for provider in (self.filesystem_provider, self.version_catalog, self.manifest_resolver,
                         self.publish_provider, self.update_server_provider):
            if not await provider.initialize():
                raise RuntimeError(f"Ошибка инициализации {type(provider).__name__}")

        logger.info("✅ Все провайдеры инициализированы")

    async def start(self) -> bool:
        """Запуск модуля"""
        logger.info("🚀 Запуск KioskUpdateManager...")

        if not self.is_initialized:
            logger.error("❌ Модуль не инициализирован")
            return False

        if self.is_running:
            logger.warning("⚠️ Модуль уже запущен")
            return True

        if not await self.update_server_provider.start_server():
            logger.error("❌ Ошибка запуска HTTP сервера")
            self.status = ServiceStatus.ERROR
            return False

        self.is_running = True
        self.status = ServiceStatus.RUNNING
        self.start_time = time.monotonic()

        logger.info("✅ KioskUpdateManager запущен")
        return True

    async def stop(self) -> bool:
        """Остановка модуля"""
        logger.info("🛑 Остановка KioskUpdateManager...")

        if not self.is_running:
            logger.info("ℹ️ Модуль уже остановлен")
            return True

        for provider in (self.update_server_provider, self.publish_provider, self.manifest_resolver,
                         self.version_catalog, self.filesystem_provider):
            if provider:
                await provider.stop()

        self.is_running = False
        self.status = ServiceStatus.STOPPED
        logger.info("✅ KioskUpdateManager остановлен")
        return True

    async def resolve_latest(self) -> VersionManifest:
        """Манифест последней полной версии"""
        self._ensure_initialized()
        return await self.manifest_resolver.resolve_latest()

    async def create_version(self, version: str, notes: str = "") -> Path:
        """Создание папки новой версии"""
        self._ensure_initialized()
        return await self.publish_provider.create_version(version, notes)

    def _ensure_initialized(self):
        if not self.is_initialized:
            raise RuntimeError("KioskUpdateManager не инициализирован")

    def get_status(self) -> Dict[str, Any]:
        """Получение статуса модуля"""
        uptime = 0
        if self.start_time and self.is_running:
            uptime = time.monotonic() - self.start_time

        status = {
            "status": self.status.value,
            "module": "kiosk_update",
            "initialized": self.is_initialized,
            "uptime_seconds": uptime,
            "config": self.config.to_dict(),
            "providers": {}
        }

        if self.version_catalog:
            status["providers"]["version_catalog"] = self.version_catalog.get_status()
        if self.manifest_resolver:
            status["providers"]["manifest_resolver"] = self.manifest_resolver.get_status()
        if self.publish_provider:
            status["providers"]["publish"] = self.publish_provider.get_status()
        if self.update_server_provider:
            status["providers"]["update_server"] = self.update_server_provider.get_status()

        return status
