"""
Update Server Provider - HTTP сервер обновлений киоска
"""

import asyncio
import json
import logging
import mimetypes
from pathlib import Path
from typing import Dict, Any, Optional

from aiohttp import web, web_request, web_response

from ..core.types import KioskUpdateError, ArtifactNotFoundError, InvalidVersionRequestError

logger = logging.getLogger(__name__)

# Архивы (.tar.gz и т.п.) отдаются как есть, без Content-Encoding
COMPRESSED_TYPES = {
    'gzip': 'application/gzip',
    'bzip2': 'application/x-bzip2',
    'xz': 'application/x-xz',
}

# Ошибки с телом ответа {"kiosk_version_error": {...}}
DOMAIN_ERROR_STATUSES = (400, 422)


def error_response(error: KioskUpdateError) -> web_response.Response:
    """Преобразование доменной ошибки в HTTP ответ"""
    if error.status in DOMAIN_ERROR_STATUSES:
        return web.json_response({
            "kiosk_version_error": {
                "code": error.code,
                "data": None
            }
        }, status=error.status)
    return web.Response(status=error.status)


def guess_content_type(filename: str) -> str:
    content_type, encoding = mimetypes.guess_type(filename)
    if encoding:
        return COMPRESSED_TYPES.get(encoding, 'application/octet-stream')
    return content_type or 'application/octet-stream'


@web.middleware
async def error_middleware(request: web_request.Request, handler) -> web_response.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except KioskUpdateError as e:
        return error_response(e)
    except Exception:
        logger.exception(f"❌ Необработанная ошибка при обработке {request.method} {request.path}")
        return web.Response(status=500)


def _is_safe_component(component: str) -> bool:
    return bool(component) and component not in ('.', '..') and '/' not in component and '\\' not in component


class UpdateServerProvider:
    """Провайдер HTTP сервера обновлений"""

    def __init__(self, config, manifest_resolver, publish_provider):
        self.config = config
        self.manifest_resolver = manifest_resolver
        self.publish_provider = publish_provider

        self.app: Optional[web.Application] = None
        self.runner = None
        self.site = None
        self.is_running = False

        # Статистика
        self.total_manifest_requests = 0
        self.total_downloads = 0

    async def initialize(self) -> bool:
        """Инициализация провайдера"""
        logger.info("🔧 Инициализация UpdateServerProvider...")
        self.app = await self.create_app()
        return True

    async def create_app(self) -> web.Application:
        """Создание aiohttp приложения"""
        app = web.Application()

        # CORS middleware
        if self.config.cors_enabled:
            @web.middleware
            async def cors_middleware(request: web_request.Request, handler) -> web_response.StreamResponse:
                response = await handler(request)
                response.headers['Access-Control-Allow-Origin'] = '*'
                response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
                response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
                return response

            app.middlewares.append(cors_middleware)

        app.middlewares.append(error_middleware)

        # Routes
        app.router.add_get('/health', self.health_handler)
        app.router.add_get('/latest-version', self.latest_version_handler)
        app.router.add_get('/download/{version}/{platform}/{filename}', self.download_handler)
        app.router.add_post('/kiosk-version', self.create_version_handler)

        return app

    async def health_handler(self, request: web_request.Request) -> web_response.Response:
        """Проверка здоровья сервера"""
        return web.Response(text="OK")

    async def latest_version_handler(self, request: web_request.Request) -> web_response.Response:
        """Манифест последней полной версии"""
        self.total_manifest_requests += 1
        manifest = await self.manifest_resolver.resolve_latest()

        return web.json_response(
            manifest.to_dict(),
            headers={
                'Cache-Control': self.config.cache_control,
                'Pragma': 'no-cache',
                'Expires': '0'
            }
        )

    async def download_handler(self, request: web_request.Request) -> web_response.StreamResponse:
        """Отдача файла сборки потоком"""
        version = request.match_info['version']
        platform = request.match_info['platform']
        filename = request.match_info['filename']

        file_path = self._resolve_artifact_path(version, platform, filename)
        if file_path is None or not await asyncio.to_thread(file_path.is_file):
            logger.warning(f"⚠️ Файл не найден: {version}/{platform}/{filename}")
            raise ArtifactNotFoundError(f"{version}/{platform}/{filename}")

        if self.config.log_downloads:
            logger.info(f"📥 Загрузка файла: {version}/{platform}/{filename}")
        self.total_downloads += 1

        content_type = guess_content_type(filename)
        return web.FileResponse(
            file_path,
            headers={
                'Content-Type': content_type,
                'Content-Disposition': f'attachment; filename="{filename}"'
            }
        )

    async def create_version_handler(self, request: web_request.Request) -> web_response.Response:
        """Создание папки новой версии"""
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidVersionRequestError(f"Некорректный JSON: {e}") from e

        if not isinstance(payload, dict):
            raise InvalidVersionRequestError("Ожидается JSON объект")

        version = payload.get('version')
        notes = payload.get('notes', '')
        if not isinstance(version, str) or not isinstance(notes, str):
            raise InvalidVersionRequestError("Поля version и notes должны быть строками")

        await self.publish_provider.create_version(version, notes)
        return web.Response(status=200)

    def _resolve_artifact_path(self, version: str, platform: str, filename: str) -> Optional[Path]:
        """
        Путь к файлу внутри хранилища или None для небезопасных компонентов

        Путь не разрешается через resolve(): папки версий могут быть
        символическими ссылками, и каталог версий их уже публикует.
        """
        if not all(_is_safe_component(part) for part in (version, platform, filename)):
            return None
        return Path(self.config.kiosk_directory) / version / platform / filename

    async def start_server(self) -> bool:
        """Запуск HTTP сервера"""
        if self.is_running:
            logger.warning("⚠️ Сервер уже запущен")
            return True

        if not self.app:
            logger.error("❌ Приложение не инициализировано")
            return False

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.config.host, self.config.port)
        await self.site.start()

        self.is_running = True

        logger.info("=" * 60)
        logger.info("🔄 СЕРВЕР ОБНОВЛЕНИЙ КИОСКА ЗАПУЩЕН")
        logger.info("=" * 60)
        logger.info(f"🌐 URL: http://{self.config.host}:{self.config.port}")
        logger.info(f"📡 Manifest: http://{self.config.host}:{self.config.port}/latest-version")
        logger.info(f"📁 Downloads: http://{self.config.host}:{self.config.port}/download/")
        logger.info(f"💚 Health: http://{self.config.host}:{self.config.port}/health")
        logger.info("=" * 60)

        return True

    async def stop_server(self) -> bool:
        """Остановка HTTP сервера"""
        if not self.is_running:
            logger.info("ℹ️ Сервер уже остановлен")
            return True

        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()

        self.is_running = False
        logger.info("✅ Сервер обновлений остановлен")
        return True

    async def stop(self) -> bool:
        """Остановка провайдера"""
        logger.info("🛑 Остановка UpdateServerProvider...")
        return await self.stop_server()

    def get_status(self) -> Dict[str, Any]:
        """Получение статуса провайдера"""
        return {
            "status": "running" if self.is_running else "stopped",
            "provider": "update_server",
            "host": self.config.host,
            "port": self.config.port,
            "is_running": self.is_running,
            "total_manifest_requests": self.total_manifest_requests,
            "total_downloads": self.total_downloads,
            "endpoints": {
                "manifest": f"http://{self.config.host}:{self.config.port}/latest-version",
                "downloads": f"http://{self.config.host}:{self.config.port}/download/",
                "health": f"http://{self.config.host}:{self.config.port}/health"
            }
        }
