"""
Lineage graph module for twbgraph
Graph-based querying of field dependencies
"""

from twbgraph.graph.lineage_graph import FieldLineageGraph

__all__ = ['FieldLineageGraph']
