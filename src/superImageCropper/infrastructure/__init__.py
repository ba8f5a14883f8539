"""Concrete adapters for the application interfaces."""

from .snapshot_provider import SnapshotGeometryProvider

__all__ = ["SnapshotGeometryProvider"]
