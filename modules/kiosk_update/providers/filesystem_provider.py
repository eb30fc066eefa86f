"""
Filesystem Provider - асинхронный доступ к хранилищу версий
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Union

from ..core.types import DirectoryEntry, FileTimestamps

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _scan(path: PathLike) -> List[DirectoryEntry]:
    entries = []
    with os.scandir(path) as iterator:
        for entry in iterator:
            entries.append(DirectoryEntry(
                name=entry.name,
                is_dir=entry.is_dir(),
                is_file=entry.is_file()
            ))
    return entries


def _stat(path: PathLike) -> FileTimestamps:
    stat = os.stat(path)
    return FileTimestamps(
        modified=stat.st_mtime,
        created=getattr(stat, 'st_birthtime', None)
    )


def _write_text(path: PathLike, text: str) -> None:
    Path(path).write_text(text, encoding='utf-8')


class FilesystemProvider:
    """
    Провайдер файловой системы

    Все блокирующие вызовы выполняются через asyncio.to_thread, поэтому
    корутины приостанавливаются на каждом листинге и чтении файла.
    Ошибки ОС (OSError) не перехватываются, их обрабатывает вызывающий код.
    """

    def __init__(self, config=None):
        self.config = config

    async def initialize(self) -> bool:
        """Инициализация провайдера"""
        logger.info("🔧 Инициализация FilesystemProvider...")
        return True

    async def list_directory(self, path: PathLike) -> List[DirectoryEntry]:
        """
        Листинг непосредственного содержимого директории

        Порядок элементов определяется файловой системой.

        Raises:
            OSError: директория не существует или недоступна
        """
        return await asyncio.to_thread(_scan, path)

    async def read_file_text(self, path: PathLike) -> str:
        """Чтение файла как UTF-8 текста"""
        return await asyncio.to_thread(Path(path).read_text, encoding='utf-8')

    async def stat_timestamps(self, path: PathLike) -> FileTimestamps:
        """Время создания (если поддерживается) и изменения файла"""
        return await asyncio.to_thread(_stat, path)

    async def exists(self, path: PathLike) -> bool:
        return await asyncio.to_thread(os.path.exists, path)

    async def is_file(self, path: PathLike) -> bool:
        return await asyncio.to_thread(os.path.isfile, path)

    async def make_directory(self, path: PathLike, mode: int = 0o755) -> None:
        """Создание директории с явной установкой прав (umask не влияет)"""
        await asyncio.to_thread(os.mkdir, path)
        await asyncio.to_thread(os.chmod, path, mode)

    async def write_file_text(self, path: PathLike, text: str) -> None:
        await asyncio.to_thread(_write_text, path, text)

    async def stop(self) -> bool:
        """Остановка провайдера"""
        logger.info("🛑 Остановка FilesystemProvider...")
        return True

    def get_status(self) -> Dict[str, Any]:
        """Получение статуса провайдера"""
        return {
            "status": "running",
            "provider": "filesystem"
        }
