"""
Version Provider - каталог версий и семантическое версионирование
"""

import logging
import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Dict, Any, List, Tuple, Optional

from ..core.types import VersionDirectory, CatalogUnavailableError
from .filesystem_provider import FilesystemProvider

logger = logging.getLogger(__name__)

_NUMERIC = r'0|[1-9]\d*'
_PRERELEASE_ID = r'0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*'
_BUILD_ID = r'[0-9a-zA-Z-]+'

VERSION_PATTERN = re.compile(
    rf'(?P<major>{_NUMERIC})\.(?P<minor>{_NUMERIC})\.(?P<patch>{_NUMERIC})'
    rf'(?:-(?P<prerelease>(?:{_PRERELEASE_ID})(?:\.(?:{_PRERELEASE_ID}))*))?'
    rf'(?:\+(?P<build>{_BUILD_ID}(?:\.{_BUILD_ID})*))?',
    re.ASCII
)


def _identifier_key(identifier: str) -> Tuple[int, int, str]:
    # Числовые идентификаторы всегда младше буквенно-цифровых
    if identifier.isdigit():
        return (0, int(identifier), "")
    return (1, 0, identifier)


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """Семантическая версия MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]"""
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, version_string: str) -> 'SemanticVersion':
        """
        Парсинг версии из строки

        Args:
            version_string: Строка версии (например, "1.2.3-beta.1+build.5")

        Returns:
            SemanticVersion

        Raises:
            ValueError: Если версия неверного формата
        """
        match = VERSION_PATTERN.fullmatch(version_string)
        if not match:
            raise ValueError(f"Неверный формат версии: {version_string}")

        prerelease = match.group('prerelease')
        build = match.group('build')
        return cls(
            major=int(match.group('major')),
            minor=int(match.group('minor')),
            patch=int(match.group('patch')),
            prerelease=tuple(prerelease.split('.')) if prerelease else (),
            build=tuple(build.split('.')) if build else ()
        )

    def precedence_key(self) -> tuple:
        """Ключ приоритета по semver 2.0.0 (без учёта build)"""
        if self.prerelease:
            pre = (0, tuple(_identifier_key(i) for i in self.prerelease))
        else:
            # Релиз старше любой своей pre-release версии
            pre = (1, ())
        return (self.major, self.minor, self.patch, pre)

    def sort_key(self) -> tuple:
        # build не влияет на приоритет, но делает порядок полным
        return self.precedence_key() + (tuple(_identifier_key(i) for i in self.build),)

    def __lt__(self, other: 'SemanticVersion') -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


class VersionCatalog:
    """Каталог папок версий в корневой директории хранилища"""

    def __init__(self, config, filesystem: Optional[FilesystemProvider] = None):
        self.config = config
        self.filesystem = filesystem or FilesystemProvider(config)

    async def initialize(self) -> bool:
        """Инициализация провайдера"""
        logger.info("🔧 Инициализация VersionCatalog...")
        return True

    async def list_versions(self, root_path) -> List[VersionDirectory]:
        """
        Папки версий, отсортированные от новой к старой

        Читаются только имена непосредственных поддиректорий; имена,
        не являющиеся семантической версией, пропускаются без ошибки.

        Args:
            root_path: Корневая директория хранилища версий

        Returns:
            List[VersionDirectory]: Версии по убыванию

        Raises:
            CatalogUnavailableError: Корневую директорию нельзя прочитать
        """
        try:
            entries = await self.filesystem.list_directory(root_path)
        except OSError as e:
            logger.error(f"❌ Не удалось прочитать директорию версий {root_path}: {e}")
            raise CatalogUnavailableError(f"Директория версий недоступна: {root_path}") from e

        versions = []
        for entry in entries:
            if not entry.is_dir:
                continue
            try:
                parsed = SemanticVersion.parse(entry.name)
            except ValueError:
                logger.debug(f"Пропуск папки {entry.name}: не семантическая версия")
                continue
            versions.append(VersionDirectory(name=entry.name, parsed_version=parsed))

        versions.sort(key=lambda v: v.parsed_version, reverse=True)
        return versions

    async def list_names(self, root_path) -> List[str]:
        """Имена папок версий по убыванию"""
        return [version.name for version in await self.list_versions(root_path)]

    def parse_version(self, version_string: str) -> SemanticVersion:
        return SemanticVersion.parse(version_string)

    def validate_version(self, version: str) -> bool:
        """
        Валидация версии

        Args:
            version: Строка версии для проверки

        Returns:
            bool: True если версия валидна
        """
        try:
            self.parse_version(version)
            return True
        except ValueError:
            return False

    def compare_versions(self, version1: str, version2: str) -> int:
        """
        Сравнение версий по приоритету semver

        Returns:
            int: -1 если version1 < version2, 0 если равны, 1 если version1 > version2

        Raises:
            ValueError: Если одна из версий неверного формата
        """
        v1_key = self.parse_version(version1).precedence_key()
        v2_key = self.parse_version(version2).precedence_key()

        if v1_key < v2_key:
            return -1
        elif v1_key > v2_key:
            return 1
        return 0

    async def stop(self) -> bool:
        """Остановка провайдера"""
        logger.info("🛑 Остановка VersionCatalog...")
        return True

    def get_status(self) -> Dict[str, Any]:
        """Получение статуса провайдера"""
        return {
            "status": "running",
            "provider": "version_catalog",
            "kiosk_directory": self.config.kiosk_directory
        }
