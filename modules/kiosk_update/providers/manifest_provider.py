"""
Manifest Provider - поиск последней полной версии и сборка манифеста
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, Iterable, List, Tuple

from ..core.types import (
    Platform,
    PlatformManifestEntry,
    VersionManifest,
    SIGNATURE_EXTENSION,
    NOTES_FILENAME,
    EPOCH_PUB_DATE,
)
from .filesystem_provider import FilesystemProvider
from .version_provider import VersionCatalog

logger = logging.getLogger(__name__)


def format_pub_date(timestamp: float) -> str:
    """Unix timestamp -> RFC3339 в UTC ("2024-05-01T10:00:00+00:00")"""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class ManifestResolver:
    """
    Резолвер манифеста обновлений

    Публикуется самая новая версия, у которой загружены сборки всех
    обязательных платформ (подпись *.sig + файл для скачивания). Частично
    загруженные новые версии пропускаются, клиент получает предыдущую
    полную версию.
    """

    def __init__(self, config, catalog: Optional[VersionCatalog] = None,
                 filesystem: Optional[FilesystemProvider] = None):
        self.config = config
        self.filesystem = filesystem or FilesystemProvider(config)
        self.catalog = catalog or VersionCatalog(config, self.filesystem)

        # Статистика
        self.total_resolutions = 0
        self.last_resolved_version: Optional[str] = None

    async def initialize(self) -> bool:
        """Инициализация провайдера"""
        logger.info("🔧 Инициализация ManifestResolver...")
        return True

    async def resolve_latest(self, root_path=None,
                             required_platforms: Optional[Iterable[Platform]] = None,
                             base_download_url: Optional[str] = None) -> VersionManifest:
        """
        Поиск последней полной версии

        Args:
            root_path: Корневая директория версий (по умолчанию из конфигурации)
            required_platforms: Обязательные платформы (по умолчанию из конфигурации)
            base_download_url: Публичный адрес сервера загрузок

        Returns:
            VersionManifest: Манифест версии или пустой манифест, если полной версии нет

        Raises:
            CatalogUnavailableError: Корневую директорию нельзя прочитать
        """
        root = Path(root_path if root_path is not None else self.config.kiosk_directory)
        platforms = list(required_platforms if required_platforms is not None
                         else self.config.required_platforms)
        base_url = (base_download_url if base_download_url is not None
                    else self.config.download_base_url).rstrip('/')

        self.total_resolutions += 1
        versions = await self.catalog.list_versions(root)

        if not versions:
            logger.info("ℹ️ Папки версий не найдены")
            return VersionManifest.empty(platforms, self.config.default_notes)

        for candidate in versions:
            manifest = await self._resolve_candidate(root, candidate.name, platforms, base_url)
            if manifest is not None:
                self.last_resolved_version = manifest.version
                logger.info(f"✅ Последняя полная версия: {manifest.version}")
                return manifest

        logger.warning("⚠️ Ни одна версия не загружена полностью для всех платформ")
        return VersionManifest.empty(platforms, self.config.default_notes)

    async def _resolve_candidate(self, root: Path, version: str, platforms: List[Platform],
                                 base_url: str) -> Optional[VersionManifest]:
        """Проверка полноты одной версии; None если версия неполная"""
        entries: Dict[Platform, PlatformManifestEntry] = {}
        publish_timestamp: Optional[float] = None

        for platform in platforms:
            entry, timestamp = await self._scan_platform(root, version, platform, base_url)

            if not entry.is_complete:
                # Остальные платформы можно не проверять
                logger.info(f"🔍 Версия {version} пропущена: платформа {platform.value} не готова")
                return None

            entries[platform] = entry
            if timestamp is not None and (publish_timestamp is None or timestamp > publish_timestamp):
                publish_timestamp = timestamp

        notes = await self._read_notes(root / version)
        return VersionManifest(
            version=version,
            notes=notes,
            pub_date=(format_pub_date(publish_timestamp) if publish_timestamp is not None
                      else EPOCH_PUB_DATE),
            platforms=entries
        )

    async def _scan_platform(self, root: Path, version: str, platform: Platform,
                             base_url: str) -> Tuple[PlatformManifestEntry, Optional[float]]:
        """
        Поиск подписи и файла для скачивания в папке платформы

        Returns:
            Tuple[PlatformManifestEntry, Optional[float]]: Запись платформы и
            самое позднее время публикации файла для скачивания
        """
        platform_dir = root / version / platform.value
        missing = PlatformManifestEntry(platform.value)

        try:
            files = await self.filesystem.list_directory(platform_dir)
        except OSError as e:
            logger.warning(f"⚠️ Не удалось прочитать директорию {platform_dir}: {e}")
            return missing, None

        signature = ""
        download_url = ""
        latest: Optional[float] = None
        for file in files:
            if not file.is_file:
                continue
            path = platform_dir / file.name

            try:
                if Path(file.name).suffix == SIGNATURE_EXTENSION:
                    # При нескольких .sig побеждает последний в порядке обхода ФС
                    signature = await self.filesystem.read_file_text(path)
                else:
                    timestamps = await self.filesystem.stat_timestamps(path)
                    download_url = f"{base_url}/download/{version}/{platform.value}/{file.name}"
                    candidate = timestamps.publish_timestamp()
                    if latest is None or candidate > latest:
                        latest = candidate
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"⚠️ Не удалось прочитать файл {path}: {e}")
                return missing, None

        if not signature:
            logger.debug(f"Нет подписи в {platform_dir}")
        if not download_url:
            logger.debug(f"Нет файла для скачивания в {platform_dir}")

        entry = PlatformManifestEntry(platform.value, signature=signature, download_url=download_url)
        return entry, latest

    async def _read_notes(self, version_dir: Path) -> str:
        """Заметки к релизу из notes.txt, иначе заглушка из конфигурации"""
        try:
            return await self.filesystem.read_file_text(version_dir / NOTES_FILENAME)
        except (OSError, UnicodeDecodeError):
            return self.config.default_notes

    async def stop(self) -> bool:
        """Остановка провайдера"""
        logger.info("🛑 Остановка ManifestResolver...")
        return True

    def get_status(self) -> Dict[str, Any]:
        """Получение статуса провайдера"""
        return {
            "status": "running",
            "provider": "manifest_resolver",
            "total_resolutions": self.total_resolutions,
            "last_resolved_version": self.last_resolved_version,
            "required_platforms": self.config.platform_ids()
        }
