"""Workflow graph model — nodes, edges, data mappings and function descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

FUNCTION_CATEGORY = "function"


# ── Data mapping ────────────────────────────────────────────────


@dataclass
class DataMapping:
    source_output: str  # dotted path into the upstream result
    target_input: str  # dotted path into this node's input
    transform: str | None = None


# ── Node / Edge ─────────────────────────────────────────────────


@dataclass
class Node:
    node_id: str
    category: str  # "function" | "agent" | "tool" | ... (only "function" executes)
    function_id: str | None = None
    label: str | None = None
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def is_function(self) -> bool:
        return self.category == FUNCTION_CATEGORY


@dataclass
class Edge:
    edge_id: str
    source: str
    target: str
    mappings: list[DataMapping] = field(default_factory=list)


# ── Workflow ────────────────────────────────────────────────────


@dataclass
class Workflow:
    workflow_id: str
    name: str = ""
    date: str | None = None
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def node(self, node_id: str) -> Node | None:
        for n in self.nodes:
            if n.node_id == node_id:
                return n
        return None

    def function_nodes(self) -> list[Node]:
        """Function nodes in insertion order."""
        return [n for n in self.nodes if n.is_function]

    def incoming_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.target == node_id]

    def outgoing_edges(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.source == node_id]


# ── Function descriptor ─────────────────────────────────────────


@dataclass
class OutputField:
    name: str
    path: str
    type: str
    description: str = ""


@dataclass
class InputField:
    name: str
    path: str
    type: str
    required: bool = False
    description: str = ""


@dataclass
class FunctionDescriptor:
    function_id: str
    analysis_type: str
    label: str = ""
    description: str = ""
    schema_version: str = "1"
    inputs: list[InputField] = field(default_factory=list)
    outputs: list[OutputField] = field(default_factory=list)

    def output(self, path: str) -> OutputField | None:
        for f in self.outputs:
            if f.path == path:
                return f
        return None

    def input(self, path: str) -> InputField | None:
        for f in self.inputs:
            if f.path == path:
                return f
        return None

    def required_inputs(self) -> list[InputField]:
        return [f for f in self.inputs if f.required]
