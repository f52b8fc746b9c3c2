"""
Edge loading utilities for Edge Bundle.

Two file layouts are understood, as JSON or YAML:
- an edge list: {"edges": [{"source": [x, y], "target": {"x": .., "y": ..}, "metadata": ...}]}
- a networkx node-link graph whose nodes carry x/y attributes; edge
  attributes become the edge metadata.
"""

import json
import os

import networkx as nx
import yaml

from edgebundle.models import Edge, Point
from edgebundle.tracer import get_tracer, trace

SUPPORTED_EXTENSIONS = [".json", ".yaml", ".yml"]


def coerce_point(value):
    """Accept a Point, an [x, y] pair or a {"x": .., "y": ..} mapping."""
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point(x=value["x"], y=value["y"])
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return Point(x=value[0], y=value[1])
    raise ValueError(f"Cannot interpret {value!r} as a point")


def coerce_edge(value):
    """
    Accept an Edge, a mapping with source/target (and optional metadata),
    a (source, target) pair or a flat (sx, sy, tx, ty) tuple.
    """
    if isinstance(value, Edge):
        return value
    if isinstance(value, dict):
        return Edge(
            source=coerce_point(value["source"]),
            target=coerce_point(value["target"]),
            metadata=value.get("metadata"),
        )
    if isinstance(value, (list, tuple)):
        if len(value) == 4:
            return Edge.from_coords(*value)
        if len(value) == 2:
            return Edge(source=coerce_point(value[0]), target=coerce_point(value[1]))
    raise ValueError(f"Cannot interpret {value!r} as an edge")


def _read_document(path):
    ext = os.path.splitext(path)[1].lower()
    with open(path, "r", encoding="utf-8") as f:
        if ext == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def _links_key(data):
    return "links" if "links" in data else "edges"


def edges_from_graph(graph):
    """
    Build edges from a networkx graph with x/y node attributes.

    Edge order follows the graph's edge iteration order. Metadata holds the
    edge attributes plus the source and target node ids.
    """
    positions = {}
    for node, attrs in graph.nodes(data=True):
        if "x" not in attrs or "y" not in attrs:
            raise ValueError(f"Node {node!r} has no x/y position")
        positions[node] = Point(x=attrs["x"], y=attrs["y"])

    edges = []
    for u, v, attrs in graph.edges(data=True):
        metadata = {"source": u, "target": v, **attrs}
        edges.append(Edge(source=positions[u], target=positions[v], metadata=metadata))
    return edges


def edges_from_document(data):
    """Edges from a parsed edge-list or node-link document."""
    if isinstance(data, list):
        return [coerce_edge(e) for e in data]

    if not isinstance(data, dict):
        raise ValueError("Edge document must be a mapping or a list of edges")

    if "nodes" in data:
        graph = nx.node_link_graph(data, edges=_links_key(data))
        get_tracer().event("Read node-link graph", graph=graph)
        return edges_from_graph(graph)

    if "edges" in data:
        return [coerce_edge(e) for e in data["edges"]]

    raise ValueError("Edge document has neither 'edges' nor 'nodes'")


@trace(label="load_edges")
def load_edges(path):
    """
    Load edges from a JSON or YAML file.

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if the document cannot be interpreted.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Edge file not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported edge file format: {path}")

    edges = edges_from_document(_read_document(path))

    tracer.event(f"Loaded {len(edges)} edges from {os.path.basename(path)}")

    return edges


def validate_edge_inputs(path):
    """
    Validate that an input path exists and holds a readable edge document.

    Returns a list of error messages (empty if valid).
    """
    errors = []

    if not os.path.exists(path):
        return [f"File not found: {path}"]

    ext = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        return [f"Unsupported edge file format: {path}"]

    try:
        data = _read_document(path)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        return [f"Cannot parse {path}: {str(e)}"]

    try:
        edges = edges_from_document(data)
    except (KeyError, TypeError, ValueError, nx.NetworkXError) as e:
        return [f"Invalid edge document {path}: {str(e)}"]

    if not edges:
        errors.append(f"No edges in {path}")

    return errors
