"""Configuration for the Document Lineage Engine."""

from .settings import (
    OpenRouterSettings,
    PipelineSettings,
    RetrySettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "OpenRouterSettings",
    "PipelineSettings",
    "RetrySettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
