"""
Type aliases for the Document Lineage Engine.
"""

from __future__ import annotations

from typing import Dict, Union

from typing_extensions import TypeAliasType

# Persisted metadata is restricted to a closed set of value kinds
MetadataValue = TypeAliasType(
    "MetadataValue",
    Union[bool, int, float, str, None, Dict[str, "MetadataValue"]],
)
Metadata = Dict[str, MetadataValue]
