"""
Publish Provider - создание структуры папок для новой версии
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional

from ..core.types import (
    NOTES_FILENAME,
    InvalidVersionRequestError,
    VersionFolderExistsError,
)
from .filesystem_provider import FilesystemProvider
from .version_provider import VersionCatalog

logger = logging.getLogger(__name__)

FOLDER_MODE = 0o755


class PublishProvider:
    """Провайдер публикации: папка версии, notes.txt и папки платформ"""

    def __init__(self, config, catalog: Optional[VersionCatalog] = None,
                 filesystem: Optional[FilesystemProvider] = None):
        self.config = config
        self.filesystem = filesystem or FilesystemProvider(config)
        self.catalog = catalog or VersionCatalog(config, self.filesystem)

        self.total_created = 0

    async def initialize(self) -> bool:
        """Инициализация провайдера"""
        logger.info("🔧 Инициализация PublishProvider...")
        return True

    async def create_version(self, version: str, notes: str = "") -> Path:
        """
        Создание папки новой версии

        Args:
            version: Имя версии (семантическая версия)
            notes: Заметки к релизу, сохраняются в notes.txt

        Returns:
            Path: Путь к созданной папке версии

        Raises:
            InvalidVersionRequestError: Имя версии не является семантической версией
            VersionFolderExistsError: Папка версии уже существует
            OSError: Ошибка файловой системы
        """
        if not self.catalog.validate_version(version):
            logger.error(f"❌ Неверная версия: {version}")
            raise InvalidVersionRequestError(f"Неверный формат версии: {version}")

        version_dir = Path(self.config.kiosk_directory) / version

        if await self.filesystem.exists(version_dir):
            logger.error(f"❌ Папка версии {version} уже существует")
            raise VersionFolderExistsError(f"Версия {version} уже существует")

        try:
            await self.filesystem.make_directory(version_dir, FOLDER_MODE)
        except FileExistsError as e:
            # Параллельный запрос успел создать папку раньше
            raise VersionFolderExistsError(f"Версия {version} уже существует") from e

        await self.filesystem.write_file_text(version_dir / NOTES_FILENAME, notes)

        for platform_id in self.config.platform_ids():
            await self.filesystem.make_directory(version_dir / platform_id, FOLDER_MODE)

        self.total_created += 1
        logger.info(f"✅ Создана папка версии {version}")
        return version_dir

    async def stop(self) -> bool:
        """Остановка провайдера"""
        logger.info("🛑 Остановка PublishProvider...")
        return True

    def get_status(self) -> Dict[str, Any]:
        """Получение статуса провайдера"""
        return {
            "status": "running",
            "provider": "publish",
            "total_created": self.total_created
        }
