"""API endpoints."""

from vidmeta.api import admin, health, metrics, videos

__all__ = [
    "admin",
    "health",
    "metrics",
    "videos",
]
