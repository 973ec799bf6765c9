"""Merging of per-entity lineage mappings into one de-duplicated graph.

Independent model calls assign their own local node ids, so nodes are
identified across calls by qualifiedName (falling back to nodeId). The first
node seen for a key wins; when its nodeId is already taken by another key it
is merged under a suffixed id, so merged ids are unique. Relationships are resolved from local id to key to
the winning node's id; relationships with an unresolvable endpoint are
dropped so every persisted edge points at a merged node.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from lineage_engine.models.lineage import (
    LineageMapping,
    LineageNode,
    LineageRelationship,
    MergedLineageMapping,
)
from lineage_engine.utils.clock import Clock, isoformat, utc_now

logger = logging.getLogger(__name__)


class MappingMerger:
    """Merges LineageMapping objects; one instance may serve many merges."""

    def __init__(self, clock: Clock = utc_now, log: Optional[logging.Logger] = None) -> None:
        self._clock = clock
        self._logger = log or logger

    def merge(self, mappings: Sequence[LineageMapping]) -> MergedLineageMapping:
        """Merge mappings in order into a MergedLineageMapping."""
        key_to_node_id: Dict[str, str] = {}
        used_ids: Set[str] = set()
        winners: List[LineageNode] = []
        local_indexes = [self._local_index(mapping) for mapping in mappings]

        for mapping in mappings:
            for node in mapping.lineage_nodes:
                key = node.dedup_key
                if key in key_to_node_id:
                    continue
                node_id = self._unique_id(node.node_id, used_ids)
                if node_id != node.node_id:
                    self._logger.info(
                        f"Node id {node.node_id} already taken; {key} merged as {node_id}"
                    )
                used_ids.add(node_id)
                key_to_node_id[key] = node_id
                winners.append(node)

        stamp = isoformat(self._clock())
        owners = self._node_owners(mappings, local_indexes)
        merged_nodes = [
            self._finalize_node(node, owners[id(node)], key_to_node_id, stamp)
            for node in winners
        ]

        seen: Set[Tuple[str, str, str]] = set()
        merged_relationships: List[LineageRelationship] = []
        dropped = 0
        for mapping, local_index in zip(mappings, local_indexes):
            for relationship in mapping.lineage_relationships:
                source = self._resolve(relationship.source_node_id, local_index, key_to_node_id)
                target = self._resolve(relationship.target_node_id, local_index, key_to_node_id)
                if source is None or target is None:
                    dropped += 1
                    continue
                triple = (source, target, relationship.relationship_type)
                if triple in seen:
                    continue
                seen.add(triple)
                merged_relationships.append(
                    relationship.model_copy(
                        update={
                            "relationship_id": f"{source}-{target}",
                            "source_node_id": source,
                            "target_node_id": target,
                        }
                    )
                )

        if dropped:
            self._logger.info(f"Dropped {dropped} relationships with unresolvable endpoints")
        self._logger.info(
            f"Merged {len(mappings)} mappings into {len(merged_nodes)} nodes "
            f"and {len(merged_relationships)} relationships"
        )
        return MergedLineageMapping(
            lineage_nodes=merged_nodes,
            lineage_relationships=merged_relationships,
        )

    @staticmethod
    def _local_index(mapping: LineageMapping) -> Dict[str, LineageNode]:
        # Relationship endpoints are only meaningful inside their own mapping
        index: Dict[str, LineageNode] = {}
        for node in mapping.lineage_nodes:
            index.setdefault(node.node_id, node)
        return index

    @staticmethod
    def _unique_id(node_id: str, used_ids: Set[str]) -> str:
        # Local ids repeat across model calls; merged ids must not
        candidate = node_id
        suffix = 2
        while candidate in used_ids:
            candidate = f"{node_id}_{suffix}"
            suffix += 1
        return candidate

    @staticmethod
    def _resolve(
        local_id: Optional[str],
        local_index: Dict[str, LineageNode],
        key_to_node_id: Dict[str, str],
    ) -> Optional[str]:
        if local_id is None:
            return None
        node = local_index.get(local_id)
        if node is None:
            return None
        return key_to_node_id.get(node.dedup_key)

    @staticmethod
    def _node_owners(
        mappings: Sequence[LineageMapping],
        local_indexes: List[Dict[str, LineageNode]],
    ) -> Dict[int, Dict[str, LineageNode]]:
        owners: Dict[int, Dict[str, LineageNode]] = {}
        for mapping, local_index in zip(mappings, local_indexes):
            for node in mapping.lineage_nodes:
                owners.setdefault(id(node), local_index)
        return owners

    def _finalize_node(
        self,
        node: LineageNode,
        local_index: Dict[str, LineageNode],
        key_to_node_id: Dict[str, str],
        stamp: str,
    ) -> LineageNode:
        update = {}
        node_id = key_to_node_id[node.dedup_key]
        if node_id != node.node_id:
            update["node_id"] = node_id
        if node.parent_id is not None:
            parent = self._resolve(node.parent_id, local_index, key_to_node_id)
            if parent is not None and parent != node.parent_id:
                update["parent_id"] = parent
        if not node.metadata.last_updated:
            update["metadata"] = node.metadata.model_copy(update={"last_updated": stamp})
        return node.model_copy(update=update) if update else node
