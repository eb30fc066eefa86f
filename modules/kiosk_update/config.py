"""
Конфигурация Kiosk Update Module
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Any, List, Tuple

from .core.types import Platform, REQUIRED_PLATFORMS


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


@dataclass
class KioskUpdateConfig:
    """Конфигурация сервера обновлений киоска"""

    # Основные настройки
    host: str = "localhost"
    port: int = 3000

    # Хранилище версий и публичный адрес загрузок
    kiosk_directory: str = "./kiosk"
    download_base_url: str = "http://localhost:3000"

    # Манифест
    default_notes: str = ""
    required_platforms: Tuple[Platform, ...] = field(default_factory=lambda: REQUIRED_PLATFORMS)

    # Настройки сервера
    cors_enabled: bool = True
    cache_control: str = "no-cache, no-store, must-revalidate"

    # Логирование
    log_level: str = "WARNING"
    log_downloads: bool = True

    def __post_init__(self):
        """Нормализация значений"""
        # URL храним без завершающего слэша, ссылки собираются через "/download/..."
        self.download_base_url = self.download_base_url.rstrip('/')
        self.required_platforms = tuple(
            p if isinstance(p, Platform) else Platform(p) for p in self.required_platforms
        )
        self.log_level = self.log_level.upper()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'KioskUpdateConfig':
        """Создание конфигурации из словаря"""
        return cls(**config_dict)

    @classmethod
    def from_env(cls) -> 'KioskUpdateConfig':
        """Создание конфигурации из переменных окружения"""
        return cls(
            host=os.getenv('KIOSK_HOST', 'localhost'),
            port=int(os.getenv('KIOSK_PORT', '3000')),
            kiosk_directory=os.getenv('KIOSK_DIRECTORY', './kiosk'),
            download_base_url=os.getenv('KIOSK_DOWNLOADABLE_URL', 'http://localhost:3000'),
            default_notes=os.getenv('KIOSK_DEFAULT_NOTES', ''),
            cors_enabled=_env_flag('KIOSK_CORS', 'true'),
            log_level=os.getenv('MAX_LOG_LEVEL', 'WARNING'),
            log_downloads=_env_flag('KIOSK_LOG_DOWNLOADS', 'true')
        )

    def platform_ids(self) -> List[str]:
        """Идентификаторы обязательных платформ в порядке обхода"""
        return [platform.value for platform in self.required_platforms]

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь"""
        return {
            'host': self.host,
            'port': self.port,
            'kiosk_directory': self.kiosk_directory,
            'download_base_url': self.download_base_url,
            'default_notes': self.default_notes,
            'required_platforms': self.platform_ids(),
            'cors_enabled': self.cors_enabled,
            'cache_control': self.cache_control,
            'log_level': self.log_level,
            'log_downloads': self.log_downloads
        }

    def is_valid(self) -> bool:
        """Проверка валидности конфигурации"""
        if not (1 <= self.port <= 65535):
            return False

        if not self.kiosk_directory or not self.download_base_url:
            return False

        if not self.required_platforms:
            return False

        return True
