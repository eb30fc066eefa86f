"""
Kiosk Update Module - сервер обновлений киоска

Модуль предоставляет функциональность для:
- Поиска последней версии, загруженной для всех платформ
- Сборки манифеста автообновления (GET /latest-version)
- Отдачи файлов сборок (GET /download/{version}/{platform}/{filename})
- Создания структуры папок новой версии (POST /kiosk-version)
"""

from .core.update_manager import KioskUpdateManager
from .config import KioskUpdateConfig
from .core.types import Platform, VersionManifest, PlatformManifestEntry

__all__ = ['KioskUpdateManager', 'KioskUpdateConfig', 'Platform', 'VersionManifest', 'PlatformManifestEntry']
__version__ = '1.0.0'
