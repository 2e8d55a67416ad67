"""Shared fixtures for backend tests."""

from __future__ import annotations

import pytest

from agenticflows.connectors.analysis_client import AnalysisResponse, AnalysisServiceError
from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.utils.metrics import metrics
from agenticflows.workflow.transforms import TransformRegistry


# ── Fake analysis service ───────────────────────────────────────


class FakeAnalysisClient:
    """Stands in for AnalysisClient; replies from a per-analysis-type table.

    A table value that is an Exception instance is raised instead of returned.
    Every call is recorded in ``calls`` as a dict of its arguments.
    """

    def __init__(self, replies: dict | None = None):
        self.replies = replies or {}
        self.calls: list[dict] = []
        self.on_call = None  # optional hook(analysis_type), runs before replying

    async def analyze(self, analysis_type, *, parameters=None, data=None, text=None, workflow_id=None):
        self.calls.append({
            "analysis_type": analysis_type,
            "parameters": parameters,
            "data": data,
            "text": text,
            "workflow_id": workflow_id,
        })
        if self.on_call is not None:
            self.on_call(analysis_type)
        reply = self.replies.get(analysis_type, {})
        if isinstance(reply, Exception):
            raise reply
        return AnalysisResponse(analysis_type=analysis_type, results=reply)

    async def chain_analysis(self, workflow_id, input_data, config=None):
        reply = self.replies.get("chain", {"workflow_id": workflow_id, "results": {}})
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def get_function_metadata(self):
        reply = self.replies.get("metadata", {})
        if isinstance(reply, Exception):
            raise reply
        return reply

    def called_types(self) -> list[str]:
        return [c["analysis_type"] for c in self.calls]


def service_error(analysis_type: str, message: str = "boom") -> AnalysisServiceError:
    return AnalysisServiceError(analysis_type, message)


@pytest.fixture
def fake_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def registry() -> FunctionRegistry:
    return FunctionRegistry()


@pytest.fixture
def transforms() -> TransformRegistry:
    return TransformRegistry()


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


# ── Workflow documents (editor JSON) ────────────────────────────


def fn_node(node_id: str, function_id: str, **data) -> dict:
    return {
        "id": node_id,
        "type": "function",
        "data": {"nodeType": "function", "functionId": function_id, "label": node_id, **data},
    }


def edge(source: str, target: str, *mappings: tuple, edge_id: str | None = None) -> dict:
    d: dict = {
        "source": source,
        "target": target,
        "data": {
            "mappings": [
                {"sourceOutput": m[0], "targetInput": m[1], **({"transform": m[2]} if len(m) > 2 else {})}
                for m in mappings
            ]
        },
    }
    if edge_id:
        d["id"] = edge_id
    return d


@pytest.fixture
def intent_findings_doc() -> dict:
    """[Intent] --label->text--> [Findings]"""
    return {
        "id": "wf-intent-findings",
        "name": "Intent then findings",
        "nodes": [
            fn_node("intent", "analysis-intent"),
            fn_node("findings", "analysis-findings"),
        ],
        "edges": [edge("intent", "findings", ("label", "text"), edge_id="e1")],
    }


@pytest.fixture
def cycle_doc() -> dict:
    """[A] -> [B] -> [A], plus an unrelated [C]."""
    return {
        "id": "wf-cycle",
        "name": "Cyclic",
        "nodes": [
            fn_node("a", "analysis-trends"),
            fn_node("b", "analysis-findings"),
            fn_node("c", "analysis-intent"),
        ],
        "edges": [edge("a", "b", edge_id="ab"), edge("b", "a", edge_id="ba")],
    }


@pytest.fixture
def independent_doc() -> dict:
    return {
        "id": "wf-independent",
        "name": "Two unrelated nodes",
        "nodes": [
            fn_node("trends", "analysis-trends"),
            fn_node("patterns", "analysis-patterns"),
        ],
        "edges": [],
    }


@pytest.fixture
def decorated_doc() -> dict:
    """A tool node and a note hanging off a three-step function chain."""
    return {
        "id": "wf-decorated",
        "name": "Database driven chain",
        "nodes": [
            {"id": "db", "type": "tool", "data": {"nodeType": "tool", "label": "Database Reader"}},
            fn_node("attrs", "analysis-attributes"),
            fn_node("trends", "analysis-trends", parameters={"focus_areas": ["billing"]}),
            {"id": "note", "type": "note", "data": {"label": "remember to check output"}},
            fn_node("plan", "analysis-plan"),
        ],
        "edges": [
            edge("db", "attrs", edge_id="db-attrs"),
            edge("attrs", "trends", ("attribute_values", "attribute_values"), edge_id="attrs-trends"),
            edge("trends", "plan", ("trends", "recommendations"), edge_id="trends-plan"),
            edge("note", "plan", edge_id="note-plan"),
        ],
    }
