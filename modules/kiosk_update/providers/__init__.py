"""
Провайдеры Kiosk Update Module
"""

from .filesystem_provider import FilesystemProvider
from .version_provider import VersionCatalog, SemanticVersion
from .manifest_provider import ManifestResolver
from .publish_provider import PublishProvider
from .update_server_provider import UpdateServerProvider

__all__ = [
    'FilesystemProvider',
    'VersionCatalog',
    'SemanticVersion',
    'ManifestResolver',
    'PublishProvider',
    'UpdateServerProvider'
]
