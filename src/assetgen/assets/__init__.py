"""Assets module - file store and placement"""

from .files import FileStore, LocalFileManager, assets_dir_for
from .placement import AssetPlacement, resolve_asset_path

__all__ = [
    "FileStore",
    "LocalFileManager",
    "assets_dir_for",
    "AssetPlacement",
    "resolve_asset_path",
]
