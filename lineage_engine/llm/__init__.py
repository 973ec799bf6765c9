"""
Text-generation model access for the Document Lineage Engine.
"""

from __future__ import annotations

from .model_invoker import ResilientModelInvoker, is_transient_error
from .remote_clients import ModelClient, OpenRouterClient

__all__ = [
    "ResilientModelInvoker",
    "is_transient_error",
    "ModelClient",
    "OpenRouterClient",
]
