"""Catalog snapshot backends."""

from .base import CatalogStorage
from .json_snapshot import JsonSnapshotStorage

__all__ = ["CatalogStorage", "JsonSnapshotStorage"]
