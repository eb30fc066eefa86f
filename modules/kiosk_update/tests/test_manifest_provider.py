"""
Тесты для ManifestResolver
"""

import json
import time
from pathlib import Path

import pytest

from conftest import BASE_URL, PAYLOADS, publish_platform, publish_version
from modules.kiosk_update.core.types import (
    CatalogUnavailableError,
    EPOCH_PUB_DATE,
    Platform,
    PlatformManifestEntry,
    VersionManifest,
)
from modules.kiosk_update.providers.filesystem_provider import FilesystemProvider
from modules.kiosk_update.providers.manifest_provider import ManifestResolver, format_pub_date


class FailingSignatureFilesystem(FilesystemProvider):
    """Файловая система, на которой не читаются подписи указанной версии"""

    def __init__(self, broken_version: str):
        super().__init__()
        self.broken_version = broken_version

    async def read_file_text(self, path):
        if Path(path).suffix == ".sig" and self.broken_version in Path(path).parts:
            raise PermissionError(f"permission denied: {path}")
        return await super().read_file_text(path)


class TestManifestResolver:
    """Тесты поиска последней полной версии"""

    @pytest.fixture
    def resolver(self, config):
        return ManifestResolver(config)

    @pytest.mark.asyncio
    async def test_empty_root_returns_sentinel(self, resolver):
        manifest = await resolver.resolve_latest()

        assert manifest.is_empty
        assert manifest.version == ""
        assert manifest.pub_date == EPOCH_PUB_DATE
        assert manifest.notes == "no notes"
        assert all(entry.signature == "" and entry.download_url == "" for entry in manifest.platforms.values())
        assert set(manifest.platforms) == set(Platform)

    @pytest.mark.asyncio
    async def test_sentinel_serialization(self, resolver):
        data = (await resolver.resolve_latest()).to_dict()

        assert data == {
            "version": "",
            "notes": "no notes",
            "pub_date": "1970-01-01T00:00:00+00:00",
            "platforms": {
                "windows-x86_64": {"signature": "", "url": ""},
                "linux-x86_64": {"signature": "", "url": ""},
                "darwin-x86_64": {"signature": "", "url": ""},
                "darwin-aarch64": {"signature": "", "url": ""},
            }
        }

    @pytest.mark.asyncio
    async def test_falls_back_to_older_complete_version(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0")
        publish_version(kiosk_root, "1.1.0", platforms=[Platform.WINDOWS_X86_64, Platform.LINUX_X86_64])

        manifest = await resolver.resolve_latest()

        assert manifest.version == "1.0.0", "Неполная 1.1.0 должна быть пропущена"
        assert len(manifest.platforms) == 4
        for platform, entry in manifest.platforms.items():
            assert entry.is_complete
            assert entry.signature == "c2lnbmF0dXJl"
            assert entry.download_url == f"{BASE_URL}/download/1.0.0/{platform.value}/{PAYLOADS[platform]}"

    @pytest.mark.asyncio
    async def test_higher_semver_wins_over_newer_mtime(self, resolver, kiosk_root):
        now = time.time()
        publish_version(kiosk_root, "1.2.0", mtime=now - 86400)
        publish_version(kiosk_root, "1.10.0", mtime=now - 3 * 86400)
        publish_version(kiosk_root, "1.9.0", mtime=now)

        manifest = await resolver.resolve_latest()

        assert manifest.version == "1.10.0"

    @pytest.mark.asyncio
    async def test_release_wins_over_prerelease(self, resolver, kiosk_root):
        publish_version(kiosk_root, "2.0.0-rc.1")
        publish_version(kiosk_root, "2.0.0")

        assert (await resolver.resolve_latest()).version == "2.0.0"

    @pytest.mark.asyncio
    async def test_no_complete_version_returns_sentinel(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0", platforms=[Platform.LINUX_X86_64])
        publish_version(kiosk_root, "1.1.0", platforms=[Platform.DARWIN_AARCH64, Platform.DARWIN_X86_64])
        (kiosk_root / "2.0.0").mkdir()

        manifest = await resolver.resolve_latest()

        assert manifest.is_empty
        assert manifest.pub_date == EPOCH_PUB_DATE

    @pytest.mark.asyncio
    async def test_missing_signature_or_payload_is_incomplete(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0")
        publish_version(kiosk_root, "1.1.0", platforms=[
            Platform.WINDOWS_X86_64, Platform.LINUX_X86_64, Platform.DARWIN_X86_64
        ])
        # darwin_aarch64 в 1.1.0: только файл сборки, подпись ещё загружается
        publish_platform(kiosk_root, "1.1.0", Platform.DARWIN_AARCH64, signature=None)

        publish_version(kiosk_root, "1.2.0", platforms=[
            Platform.WINDOWS_X86_64, Platform.LINUX_X86_64, Platform.DARWIN_X86_64
        ])
        # darwin_aarch64 в 1.2.0: только подпись
        publish_platform(kiosk_root, "1.2.0", Platform.DARWIN_AARCH64, payload="")

        assert (await resolver.resolve_latest()).version == "1.0.0"

    @pytest.mark.asyncio
    async def test_empty_signature_file_is_missing_signature(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0")
        publish_version(kiosk_root, "1.1.0", platforms=[
            Platform.WINDOWS_X86_64, Platform.DARWIN_X86_64, Platform.DARWIN_AARCH64
        ])
        publish_platform(kiosk_root, "1.1.0", Platform.LINUX_X86_64, signature="")

        assert (await resolver.resolve_latest()).version == "1.0.0"

    @pytest.mark.asyncio
    async def test_only_empty_signatures_returns_sentinel(self, resolver, kiosk_root):
        for platform in Platform:
            publish_platform(kiosk_root, "1.0.0", platform, signature="")

        manifest = await resolver.resolve_latest()

        assert manifest.is_empty
        assert manifest.platforms[Platform.LINUX_X86_64].signature == ""

    @pytest.mark.asyncio
    async def test_nested_directories_are_not_payloads(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0")
        publish_version(kiosk_root, "1.1.0", platforms=[
            Platform.WINDOWS_X86_64, Platform.LINUX_X86_64, Platform.DARWIN_X86_64
        ])
        platform_dir = kiosk_root / "1.1.0" / "darwin_aarch64"
        (platform_dir / "partial").mkdir(parents=True)
        (platform_dir / "kiosk.sig").write_text("sig", encoding="utf-8")

        assert (await resolver.resolve_latest()).version == "1.0.0"

    @pytest.mark.asyncio
    async def test_unreadable_signature_skips_candidate(self, config, kiosk_root):
        publish_version(kiosk_root, "1.0.0")
        publish_version(kiosk_root, "1.1.0")
        resolver = ManifestResolver(config, filesystem=FailingSignatureFilesystem("1.1.0"))

        manifest = await resolver.resolve_latest()

        assert manifest.version == "1.0.0"

    @pytest.mark.asyncio
    async def test_pub_date_is_latest_payload_timestamp(self, resolver, kiosk_root, mtime_only):
        publish_version(kiosk_root, "1.0.0", mtime=1_700_000_000)
        publish_platform(kiosk_root, "1.0.0", Platform.DARWIN_X86_64, mtime=1_700_000_500)

        manifest = await resolver.resolve_latest()

        assert manifest.pub_date == "2023-11-14T22:21:40+00:00"
        assert manifest.pub_date == format_pub_date(1_700_000_500)

    @pytest.mark.asyncio
    async def test_notes_read_from_version_folder(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0", notes="Исправлена печать чеков")

        assert (await resolver.resolve_latest()).notes == "Исправлена печать чеков"

    @pytest.mark.asyncio
    async def test_notes_fallback_to_default(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0")

        assert (await resolver.resolve_latest()).notes == "no notes"

    @pytest.mark.asyncio
    async def test_resolution_is_idempotent(self, resolver, kiosk_root):
        publish_version(kiosk_root, "1.0.0", notes="notes")
        publish_version(kiosk_root, "1.1.0", platforms=[Platform.LINUX_X86_64])

        first = await resolver.resolve_latest()
        second = await resolver.resolve_latest()

        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())
        assert resolver.total_resolutions == 2
        assert resolver.last_resolved_version == "1.0.0"

    @pytest.mark.asyncio
    async def test_explicit_arguments_override_config(self, resolver, tmp_path):
        other_root = tmp_path / "other"
        publish_version(other_root, "3.1.4", platforms=[Platform.LINUX_X86_64])

        manifest = await resolver.resolve_latest(
            other_root,
            required_platforms=[Platform.LINUX_X86_64],
            base_download_url="http://cdn.local/"
        )

        assert manifest.version == "3.1.4"
        assert list(manifest.platforms) == [Platform.LINUX_X86_64]
        assert manifest.platforms[Platform.LINUX_X86_64].download_url == (
            "http://cdn.local/download/3.1.4/linux_x86_64/kiosk_amd64.AppImage.tar.gz"
        )

    @pytest.mark.asyncio
    async def test_missing_root_is_fatal(self, config, tmp_path):
        config.kiosk_directory = str(tmp_path / "missing")
        resolver = ManifestResolver(config)

        with pytest.raises(CatalogUnavailableError):
            await resolver.resolve_latest()


class TestVersionManifest:
    """Тесты структуры манифеста"""

    def test_manifest_is_immutable(self):
        manifest = VersionManifest.empty(Platform)

        with pytest.raises(AttributeError):
            manifest.version = "1.0.0"

    def test_platform_manifest_keys(self):
        assert [p.manifest_key for p in Platform] == [
            "windows-x86_64", "linux-x86_64", "darwin-x86_64", "darwin-aarch64"
        ]

    def test_platforms_are_read_only(self):
        manifest = VersionManifest.empty(Platform)
        entry = manifest.platforms[Platform.LINUX_X86_64]

        with pytest.raises(TypeError):
            manifest.platforms[Platform.LINUX_X86_64] = PlatformManifestEntry("linux_x86_64", "sig", "url")
        with pytest.raises(AttributeError):
            entry.signature = "sig"
