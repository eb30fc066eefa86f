"""
Общие фикстуры для тестов Kiosk Update Module
"""

import os
from pathlib import Path
from typing import Iterable, Optional

import pytest

from modules.kiosk_update.config import KioskUpdateConfig
from modules.kiosk_update.core.types import Platform, FileTimestamps

BASE_URL = "https://updates.example.com"
PAYLOADS = {
    Platform.WINDOWS_X86_64: "kiosk_x64-setup.nsis.zip",
    Platform.LINUX_X86_64: "kiosk_amd64.AppImage.tar.gz",
    Platform.DARWIN_X86_64: "kiosk_x64.app.tar.gz",
    Platform.DARWIN_AARCH64: "kiosk_aarch64.app.tar.gz",
}


def publish_platform(root: Path, version: str, platform: Platform, signature: Optional[str] = "c2lnbmF0dXJl",
                     payload: Optional[str] = None, mtime: Optional[float] = None) -> Path:
    """Создаёт папку платформы; signature=None / payload="" пропускают соответствующий файл"""
    platform_dir = root / version / platform.value
    platform_dir.mkdir(parents=True, exist_ok=True)

    payload_name = PAYLOADS[platform] if payload is None else payload
    if payload_name:
        payload_path = platform_dir / payload_name
        payload_path.write_bytes(b"kiosk build " + version.encode())
        if mtime is not None:
            os.utime(payload_path, (mtime, mtime))
        if signature is not None:
            (platform_dir / f"{payload_name}.sig").write_text(signature, encoding="utf-8")
    elif signature is not None:
        (platform_dir / "kiosk.sig").write_text(signature, encoding="utf-8")

    return platform_dir


def publish_version(root: Path, version: str, platforms: Optional[Iterable[Platform]] = None,
                    notes: Optional[str] = None, mtime: Optional[float] = None) -> Path:
    """Создаёт версию, полностью загруженную для указанных платформ (по умолчанию всех)"""
    version_dir = root / version
    version_dir.mkdir(parents=True, exist_ok=True)
    for platform in (Platform if platforms is None else platforms):
        publish_platform(root, version, platform, mtime=mtime)
    if notes is not None:
        (version_dir / "notes.txt").write_text(notes, encoding="utf-8")
    return version_dir


@pytest.fixture
def kiosk_root(tmp_path):
    """Пустая корневая директория версий"""
    root = tmp_path / "kiosk"
    root.mkdir()
    return root


@pytest.fixture
def config(kiosk_root):
    """Конфигурация, указывающая на временную директорию"""
    return KioskUpdateConfig(
        kiosk_directory=str(kiosk_root),
        download_base_url=BASE_URL,
        default_notes="no notes",
        port=3000
    )


@pytest.fixture
def mtime_only(monkeypatch):
    """Время публикации = время изменения файла на любой платформе"""
    def fake_stat(path):
        return FileTimestamps(modified=os.stat(path).st_mtime)

    monkeypatch.setattr("modules.kiosk_update.providers.filesystem_provider._stat", fake_stat)
