"""Extraction source backed by JSON files on the local filesystem."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from lineage_engine.models.lineage import DocumentExtraction
from lineage_engine.utils.exceptions import ExtractionFetchError

from .repositories import ExtractionSource

logger = logging.getLogger(__name__)


class LocalExtractionSource(ExtractionSource):
    """Reads ``<root>/<bucket>/<key>`` as a DocumentExtraction JSON document."""

    def __init__(self, root: Union[str, Path], log: Optional[logging.Logger] = None) -> None:
        self.root = Path(root)
        self._logger = log or logger

    def resolve_path(self, bucket: str, key: str) -> Path:
        """Resolve a bucket/key pair, refusing keys that escape the root."""
        root = self.root.resolve()
        path = (root / bucket / key.lstrip("/")).resolve()
        if root != path and root not in path.parents:
            raise ExtractionFetchError(f"Extraction key escapes storage root: {bucket}/{key}")
        return path

    async def fetch_extraction(self, bucket: str, key: str) -> DocumentExtraction:
        path = self.resolve_path(bucket, key)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return DocumentExtraction.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            self._logger.error(f"Error getting extraction {bucket}/{key}: {exc}")
            raise ExtractionFetchError(
                f"Failed to fetch extraction {bucket}/{key}: {exc}"
            ) from exc
