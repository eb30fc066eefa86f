"""
Типы данных для модуля обновлений киоска
"""

from enum import Enum
from types import MappingProxyType
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Iterable, Mapping


EPOCH_PUB_DATE = "1970-01-01T00:00:00+00:00"
SIGNATURE_EXTENSION = ".sig"
NOTES_FILENAME = "notes.txt"


class Platform(Enum):
    """Платформы, для которых публикуется сборка"""
    WINDOWS_X86_64 = "windows_x86_64"
    LINUX_X86_64 = "linux_x86_64"
    DARWIN_X86_64 = "darwin_x86_64"
    DARWIN_AARCH64 = "darwin_aarch64"

    @property
    def manifest_key(self) -> str:
        """Ключ платформы в JSON манифесте (windows-x86_64, darwin-aarch64, ...)"""
        return self.value.replace("_", "-", 1)


# Порядок нужен только для детерминированного обхода
REQUIRED_PLATFORMS = tuple(Platform)


class ServiceStatus(Enum):
    """Статус модуля"""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    RUNNING = "running"
    ERROR = "error"
    STOPPED = "stopped"


@dataclass
class DirectoryEntry:
    """Элемент директории"""
    name: str
    is_dir: bool
    is_file: bool


@dataclass
class FileTimestamps:
    """
    Временные метки файла

    created доступно не на всех платформах (st_birthtime есть на macOS и
    BSD, на Windows начиная с Python 3.12, и обычно нет на Linux), поэтому
    публикационное время берётся в два шага: сначала время создания,
    затем время изменения.
    """
    modified: float
    created: Optional[float] = None

    def publish_timestamp(self) -> float:
        if self.created is not None:
            return self.created
        return self.modified


@dataclass
class VersionDirectory:
    """Найденная папка версии"""
    name: str
    parsed_version: Any  # SemanticVersion


@dataclass(frozen=True)
class PlatformManifestEntry:
    """
    Данные платформы в манифесте

    Пустая строка означает "не найдено"; пустой файл .sig считается
    отсутствующей подписью.
    """
    platform_id: str
    signature: str = ""
    download_url: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.signature) and bool(self.download_url)

    def to_dict(self) -> Dict[str, str]:
        return {
            "signature": self.signature,
            "url": self.download_url
        }


@dataclass(frozen=True)
class VersionManifest:
    """Манифест последней полной версии"""
    version: str
    notes: str
    pub_date: str
    platforms: Mapping[Platform, PlatformManifestEntry] = field(default_factory=dict)

    def __post_init__(self):
        # Манифест неизменяем целиком, включая словарь платформ
        object.__setattr__(self, "platforms", MappingProxyType(dict(self.platforms)))

    @classmethod
    def empty(cls, platforms: Iterable[Platform], notes: str = "") -> 'VersionManifest':
        """Пустой манифест: полной версии нет, это не ошибка"""
        return cls(
            version="",
            notes=notes,
            pub_date=EPOCH_PUB_DATE,
            platforms={platform: PlatformManifestEntry(platform.value) for platform in platforms}
        )

    @property
    def is_empty(self) -> bool:
        return self.version == ""

    def to_dict(self) -> Dict[str, Any]:
        """Формат ответа GET /latest-version"""
        return {
            "version": self.version,
            "notes": self.notes,
            "pub_date": self.pub_date,
            "platforms": {
                platform.manifest_key: entry.to_dict()
                for platform, entry in self.platforms.items()
            }
        }


class KioskUpdateError(Exception):
    """Базовое исключение для модуля обновлений киоска"""
    code = "Internal"
    status = 500


class CatalogUnavailableError(KioskUpdateError):
    """Корневая директория версий недоступна (ошибка конфигурации)"""
    code = "Internal"
    status = 500


class ArtifactNotFoundError(KioskUpdateError):
    """Запрошенный файл отсутствует"""
    code = "NotFound"
    status = 404


class VersionFolderExistsError(KioskUpdateError):
    """Папка версии уже существует"""
    code = "FolderExist"
    status = 422


class InvalidVersionRequestError(KioskUpdateError):
    """Некорректный запрос на создание версии"""
    code = "InvalidRequest"
    status = 400
