"""Workflow JSON parser — converts the persisted editor document into the graph model."""

from __future__ import annotations

from typing import Any

from agenticflows.workflow.errors import WorkflowParseError
from agenticflows.workflow.model import DataMapping, Edge, Node, Workflow

# Keys of a node's ``data`` block that are lifted onto Node fields; the rest
# stays in the configuration bag.
_NODE_META_KEYS = {"nodeType", "functionId", "label"}


def parse_workflow(raw: dict[str, Any], workflow_id: str | None = None) -> Workflow:
    """Parse a ``{nodes, edges}`` document (plus optional id/name/date) into a Workflow."""
    if not isinstance(raw, dict):
        raise WorkflowParseError("Workflow document must be a JSON object")

    nodes_raw = raw.get("nodes") or []
    edges_raw = raw.get("edges") or []
    if not isinstance(nodes_raw, list):
        raise WorkflowParseError("'nodes' must be a list")
    if not isinstance(edges_raw, list):
        raise WorkflowParseError("'edges' must be a list")

    nodes = [_parse_node(i, n) for i, n in enumerate(nodes_raw)]
    edges = [_parse_edge(i, e) for i, e in enumerate(edges_raw)]

    return Workflow(
        workflow_id=workflow_id or raw.get("id", ""),
        name=raw.get("name", ""),
        date=raw.get("date"),
        nodes=nodes,
        edges=edges,
    )


def dump_workflow(wf: Workflow) -> dict[str, Any]:
    """Inverse of :func:`parse_workflow`: back to the editor's document shape."""
    return {
        "id": wf.workflow_id,
        "name": wf.name,
        "date": wf.date,
        "nodes": [
            {
                "id": n.node_id,
                "type": n.category,
                "data": {
                    **n.config,
                    "nodeType": n.category,
                    **({"functionId": n.function_id} if n.function_id else {}),
                    **({"label": n.label} if n.label else {}),
                },
            }
            for n in wf.nodes
        ],
        "edges": [
            {
                "id": e.edge_id,
                "source": e.source,
                "target": e.target,
                "data": {
                    "mappings": [
                        {
                            "sourceOutput": m.source_output,
                            "targetInput": m.target_input,
                            **({"transform": m.transform} if m.transform else {}),
                        }
                        for m in e.mappings
                    ]
                },
            }
            for e in wf.edges
        ],
    }


# ── Internal helpers ────────────────────────────────────────────


def _parse_node(idx: int, d: Any) -> Node:
    if not isinstance(d, dict):
        raise WorkflowParseError(f"nodes[{idx}] must be an object")
    nid = d.get("id")
    if not nid or not isinstance(nid, str):
        raise WorkflowParseError(f"nodes[{idx}] is missing a string 'id'")

    data = d.get("data") or {}
    if not isinstance(data, dict):
        raise WorkflowParseError(f"Node '{nid}': 'data' must be an object")

    # The editor stores the semantic category in data.nodeType; older
    # documents only carry the React Flow node type.
    category = data.get("nodeType") or d.get("type") or ""
    if not isinstance(category, str):
        raise WorkflowParseError(f"Node '{nid}': 'nodeType' must be a string")
    function_id = data.get("functionId") or None
    if function_id is not None and not isinstance(function_id, str):
        raise WorkflowParseError(f"Node '{nid}': 'functionId' must be a string")

    return Node(
        node_id=nid,
        category=category,
        function_id=function_id,
        label=data.get("label"),
        config={k: v for k, v in data.items() if k not in _NODE_META_KEYS},
    )


def _parse_edge(idx: int, d: Any) -> Edge:
    if not isinstance(d, dict):
        raise WorkflowParseError(f"edges[{idx}] must be an object")
    source = d.get("source")
    target = d.get("target")
    if not source or not target:
        raise WorkflowParseError(f"edges[{idx}] must have 'source' and 'target'")
    if not isinstance(source, str) or not isinstance(target, str):
        raise WorkflowParseError(f"edges[{idx}]: 'source' and 'target' must be strings")
    eid = d.get("id") or f"e{idx}-{source}-{target}"

    data = d.get("data") or {}
    mappings_raw = data.get("mappings") if isinstance(data, dict) else None
    if mappings_raw is None:
        mappings_raw = d.get("mappings") or []
    if not isinstance(mappings_raw, list):
        raise WorkflowParseError(f"Edge '{eid}': 'mappings' must be a list")

    return Edge(
        edge_id=eid,
        source=source,
        target=target,
        mappings=[_parse_mapping(eid, i, m) for i, m in enumerate(mappings_raw)],
    )


def _parse_mapping(eid: str, idx: int, m: Any) -> DataMapping:
    if not isinstance(m, dict):
        raise WorkflowParseError(f"Edge '{eid}': mappings[{idx}] must be an object")
    source_output = m.get("sourceOutput")
    target_input = m.get("targetInput")
    if not source_output or not target_input:
        raise WorkflowParseError(
            f"Edge '{eid}': mappings[{idx}] needs both 'sourceOutput' and 'targetInput'"
        )
    if not isinstance(source_output, str) or not isinstance(target_input, str):
        raise WorkflowParseError(
            f"Edge '{eid}': mappings[{idx}] 'sourceOutput' and 'targetInput' must be strings"
        )
    transform = m.get("transform") or None
    if transform is not None and not isinstance(transform, str):
        raise WorkflowParseError(f"Edge '{eid}': mappings[{idx}] 'transform' must be a string")
    return DataMapping(
        source_output=source_output,
        target_input=target_input,
        transform=transform,
    )
