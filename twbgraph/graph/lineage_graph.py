"""
Field Lineage Graph
Graph view over extracted fields and relationships for lineage queries
"""

import json
import logging
from typing import Dict, List, Set, Optional, Any
from pathlib import Path
from collections import defaultdict, deque
from datetime import datetime

import networkx as nx

from twbgraph.core.models import ExtractionResult, FieldRecord, ExportError

logger = logging.getLogger(__name__)

UPSTREAM = "upstream"
DOWNSTREAM = "downstream"


class FieldLineageGraph:
    """
    Lineage graph of workbook fields

    Uses NetworkX MultiDiGraph to store:
    - Fields and parameters as nodes, keyed by caption
    - One "feeds" edge per reference, so repeated references are kept
    """

    def __init__(self, cache_path: Optional[str] = None):
        """
        Initialize lineage graph

        Args:
            cache_path: Optional JSON file to load from / save to
        """
        self.graph = nx.MultiDiGraph()
        self.cache_path = Path(cache_path) if cache_path else None
        self.metadata = {
            "created_at": datetime.now().isoformat(),
            "updated_at": None,
            "version": "1.0.0"
        }
        if self.cache_path and self.cache_path.exists():
            self.load(self.cache_path)

    @classmethod
    def from_result(cls, result: ExtractionResult) -> 'FieldLineageGraph':
        """
        Build a graph from an extraction result

        Args:
            result: Output of extract_workbook

        Returns:
            Populated FieldLineageGraph
        """
        lineage = cls()
        for record in result.fields:
            lineage.add_field(record)
        for edge in result.relationships:
            lineage.add_dependency(edge.source, edge.target)
        lineage.metadata["mode"] = result.mode.value
        return lineage

    def add_field(self, record: FieldRecord) -> None:
        """Add a field node"""
        self.graph.add_node(
            record.caption,
            node_type=record.category.value,
            field_id=record.id,
            name=record.name,
            datasource=record.datasource_caption,
            data_type=record.data_type,
            formula=record.calculation_formula,
        )
        self.metadata["updated_at"] = datetime.now().isoformat()

    def add_dependency(self, source: str, target: str) -> None:
        """Add a source -> target reference edge"""
        self.graph.add_edge(source, target, edge_type="feeds")
        self.metadata["updated_at"] = datetime.now().isoformat()

    def get_field_info(self, caption: str) -> Optional[Dict[str, Any]]:
        """
        Get a field node with its direct neighbours

        Args:
            caption: Field caption

        Returns:
            Dict with node attributes, direct sources and consumers, or None
        """
        if caption not in self.graph:
            return None

        return {
            "caption": caption,
            **self.graph.nodes[caption],
            "sources": [source for source, _ in self.graph.in_edges(caption)],
            "consumers": [target for _, target in self.graph.out_edges(caption)],
        }

    def get_upstream(self, caption: str, max_depth: int = 10) -> Set[str]:
        """Fields the given field depends on, transitively"""
        return self._walk(caption, UPSTREAM, max_depth)

    def get_downstream(self, caption: str, max_depth: int = 10) -> Set[str]:
        """Fields depending on the given field, transitively"""
        return self._walk(caption, DOWNSTREAM, max_depth)

    def _neighbours(self, caption: str, direction: str) -> List[str]:
        if direction == UPSTREAM:
            return list(dict.fromkeys(self.graph.predecessors(caption)))
        return list(dict.fromkeys(self.graph.successors(caption)))

    def _walk(self, caption: str, direction: str, max_depth: int) -> Set[str]:
        """Breadth-first walk bounded by max_depth"""
        if caption not in self.graph:
            return set()

        found = set()
        queue = deque([(caption, 0)])
        while queue:
            current, depth = queue.popleft()
            if depth >= max_depth:
                continue
            for neighbour in self._neighbours(current, direction):
                if neighbour == caption or neighbour in found:
                    continue
                found.add(neighbour)
                queue.append((neighbour, depth + 1))
        return found

    def trace_lineage(self, caption: str, direction: str = UPSTREAM, max_depth: int = 10) -> Dict[str, Any]:
        """
        Nested lineage tree of a field

        Args:
            caption: Field caption to start from
            direction: "upstream" (sources) or "downstream" (consumers)
            max_depth: Maximum depth to follow

        Returns:
            Dict tree with name, depth, node_type and children
        """
        if direction not in (UPSTREAM, DOWNSTREAM):
            raise ValueError(f"Direction must be one of: {[UPSTREAM, DOWNSTREAM]}")

        visited = set()

        def _trace_recursive(current: str, depth: int) -> Dict[str, Any]:
            """Recursive tracing function"""
            node = {
                "name": current,
                "depth": depth,
                "node_type": self.graph.nodes[current].get("node_type") if current in self.graph else None,
                "children": []
            }
            if depth >= max_depth:
                node["truncated"] = bool(self._neighbours(current, direction)) if current in self.graph else False
                return node
            if current in visited:
                node["cycle"] = True
                return node

            visited.add(current)
            if current in self.graph:
                for neighbour in self._neighbours(current, direction):
                    node["children"].append(_trace_recursive(neighbour, depth + 1))
            visited.discard(current)
            return node

        return _trace_recursive(caption, 0)

    def search(self, term: str) -> Dict[str, List[str]]:
        """
        Find nodes whose caption contains term, plus their direct neighbours

        Args:
            term: Case-insensitive text

        Returns:
            Dict with "matches" and "connected" node lists
        """
        needle = (term or "").casefold()
        if not needle:
            return {"matches": [], "connected": []}

        matches = [node for node in self.graph.nodes if needle in str(node).casefold()]
        connected = []
        for node in matches:
            for neighbour in nx.all_neighbors(self.graph, node):
                if neighbour not in matches and neighbour not in connected:
                    connected.append(neighbour)

        return {"matches": matches, "connected": connected}

    def get_statistics(self) -> Dict[str, Any]:
        """Get graph statistics"""
        node_types = defaultdict(int)
        for _, data in self.graph.nodes(data=True):
            node_types[data.get("node_type", "unknown")] += 1

        return {
            "total_nodes": self.graph.number_of_nodes(),
            "total_edges": self.graph.number_of_edges(),
            "node_types": dict(node_types),
            "is_acyclic": nx.is_directed_acyclic_graph(self.graph),
            "metadata": self.metadata
        }

    def save(self, path: Optional[Path] = None) -> Path:
        """
        Save graph to a JSON file

        Raises:
            ExportError: If no path is known or writing fails
        """
        target = Path(path) if path else self.cache_path
        if target is None:
            raise ExportError("No path given to save the lineage graph")

        data = {
            "metadata": self.metadata,
            "nodes": [{"id": node, **node_data} for node, node_data in self.graph.nodes(data=True)],
            "edges": [
                {"source": source, "target": target_node, "key": key, **edge_data}
                for source, target_node, key, edge_data in self.graph.edges(data=True, keys=True)
            ]
        }

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving lineage graph: {e}")
            raise ExportError(f"Error saving lineage graph to {target}: {e}")

        logger.info(f"Lineage graph saved to {target}")
        return target

    def load(self, path: Path) -> None:
        """Load graph from a JSON file written by save()"""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading lineage graph: {e}")
            logger.info("Starting with empty graph")
            return

        self.graph.clear()
        self.metadata = data.get("metadata", self.metadata)
        for node_data in data.get("nodes", []):
            node_id = node_data.pop("id")
            self.graph.add_node(node_id, **node_data)
        for edge_data in data.get("edges", []):
            source = edge_data.pop("source")
            target = edge_data.pop("target")
            key = edge_data.pop("key", None)
            self.graph.add_edge(source, target, key=key, **edge_data)

        logger.info(f"Loaded {self.graph.number_of_nodes()} nodes and {self.graph.number_of_edges()} edges")
