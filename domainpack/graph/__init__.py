#!/usr/bin/env python3
"""
Graph Module for Domain Knowledge Packs

- GraphBuilder: single-pass builder over a DomainModel
- DomainGraph: frozen node/edge/adjacency structure with BFS queries
"""

from .builder import (
    DomainGraph,
    GraphBuilder,
    GraphEdge,
    GraphNode,
    NodeKind,
    build_graph,
)

__all__ = [
    'DomainGraph',
    'GraphBuilder',
    'GraphEdge',
    'GraphNode',
    'NodeKind',
    'build_graph',
]
