"""Tests for the workflow executor."""

from __future__ import annotations

import pytest

from agenticflows.services.workflow_service import WorkflowStore
from agenticflows.utils import run_cancel
from agenticflows.utils.metrics import metrics
from agenticflows.workflow.errors import CycleError, WorkflowNotFoundError
from agenticflows.workflow.executor import WorkflowExecutor
from agenticflows.workflow.parser import parse_workflow

from conftest import FakeAnalysisClient, edge, fn_node, service_error


def _executor(client, registry, transforms, store=None) -> WorkflowExecutor:
    return WorkflowExecutor(client, registry=registry, transforms=transforms, store=store)


def _two_step(source_fn: str, target_fn: str, *mappings: tuple) -> dict:
    return {
        "id": "wf-two-step",
        "name": "Two step",
        "nodes": [fn_node("src", source_fn), fn_node("dst", target_fn)],
        "edges": [edge("src", "dst", *mappings, edge_id="e1")],
    }


class TestDataFlow:
    @pytest.mark.asyncio
    async def test_mapped_output_reaches_downstream_input(self, registry, transforms, intent_findings_doc):
        client = FakeAnalysisClient({"intent": {"label": "billing_issue", "label_name": "Billing"}})
        wf = parse_workflow(intent_findings_doc)

        results = await _executor(client, registry, transforms).execute_workflow(wf, {"source": "ui"})

        assert client.called_types() == ["intent", "findings"]
        findings_call = client.calls[1]
        assert findings_call["data"] == {"text": "billing_issue", "source": "ui"}
        assert findings_call["text"] == "billing_issue"
        assert findings_call["workflow_id"] == "wf-intent-findings"
        assert results["intent"] == {"label": "billing_issue", "label_name": "Billing"}
        assert results.status == "completed"
        assert results.order == ["intent", "findings"]

    @pytest.mark.asyncio
    async def test_mapped_value_wins_over_initial_data(self, registry, transforms, intent_findings_doc):
        client = FakeAnalysisClient({"intent": {"label": "billing_issue"}})
        wf = parse_workflow(intent_findings_doc)

        await _executor(client, registry, transforms).execute_workflow(wf, {"text": "raw ticket text"})

        assert client.calls[0]["data"] == {"text": "raw ticket text"}
        assert client.calls[0]["text"] == "raw ticket text"
        assert client.calls[1]["data"]["text"] == "billing_issue"

    @pytest.mark.asyncio
    async def test_initial_data_reaches_every_node(self, registry, transforms, independent_doc):
        client = FakeAnalysisClient()
        wf = parse_workflow(independent_doc)

        await _executor(client, registry, transforms).execute_workflow(wf, {"focus_areas": ["churn"]})

        assert all(c["data"] == {"focus_areas": ["churn"]} for c in client.calls)

    @pytest.mark.asyncio
    async def test_missing_source_path_is_skipped(self, registry, transforms, intent_findings_doc):
        client = FakeAnalysisClient({"intent": {"description": "no label here"}})
        wf = parse_workflow(intent_findings_doc)

        await _executor(client, registry, transforms).execute_workflow(wf)

        assert "text" not in client.calls[1]["data"]

    @pytest.mark.asyncio
    async def test_nested_paths(self, registry, transforms):
        doc = _two_step("analysis-recommendations", "analysis-plan", ("priorities.high", "context"))
        client = FakeAnalysisClient({"recommendations": {"priorities": {"high": "refunds"}}})

        await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert client.calls[1]["data"] == {"context": "refunds"}

    @pytest.mark.asyncio
    async def test_writes_beneath_mapped_value_leave_upstream_result_intact(self, registry, transforms):
        doc = {
            "id": "wf-fan-out",
            "nodes": [
                fn_node("src", "analysis-intent"),
                fn_node("dst", "analysis-findings"),
                fn_node("other", "analysis-plan"),
            ],
            "edges": [
                edge("src", "dst", ("summary", "ctx"), ("label", "ctx.label"), edge_id="e1"),
                edge("src", "other", ("summary", "context"), edge_id="e2"),
            ],
        }
        client = FakeAnalysisClient({"intent": {"summary": {"x": 1}, "label": "billing"}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert results.get("src") == {"summary": {"x": 1}, "label": "billing"}
        assert client.calls[1]["data"]["ctx"] == {"x": 1, "label": "billing"}
        assert client.calls[2]["data"]["context"] == {"x": 1}

    @pytest.mark.asyncio
    async def test_initial_data_not_shared_between_nodes(self, registry, transforms, independent_doc):
        client = FakeAnalysisClient()
        seed = {"filters": {"region": "eu"}}

        await _executor(client, registry, transforms).execute_workflow(parse_workflow(independent_doc), seed)

        first, second = client.calls
        assert first["data"]["filters"] == second["data"]["filters"] == {"region": "eu"}
        assert first["data"]["filters"] is not second["data"]["filters"]

    @pytest.mark.asyncio
    async def test_node_parameters_sent(self, registry, transforms, decorated_doc):
        client = FakeAnalysisClient({"attributes": {"attribute_values": {"tier": "gold"}}})

        await _executor(client, registry, transforms).execute_workflow(parse_workflow(decorated_doc))

        assert client.called_types() == ["attributes", "trends", "plan"]
        trends_call = client.calls[1]
        assert trends_call["parameters"] == {"focus_areas": ["billing"]}
        assert trends_call["data"] == {"attribute_values": {"tier": "gold"}}
        assert client.calls[0]["parameters"] == {}


class TestMappingChecksAtRuntime:
    @pytest.mark.asyncio
    async def test_incompatible_mapping_not_executed(self, registry, transforms):
        doc = _two_step("analysis-trends", "analysis-findings", ("trends", "text"))
        client = FakeAnalysisClient({"trends": {"trends": [{"name": "refunds"}]}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert "text" not in client.calls[1]["data"]
        assert [w.kind for w in results.warnings] == ["incompatible"]
        assert metrics.get_counter("mapping_warnings_total", labels={"kind": "incompatible"}) == 1

    @pytest.mark.asyncio
    async def test_string_list_into_string_passes_raw_array(self, registry, transforms):
        doc = _two_step("analysis-trends", "analysis-findings", ("overall_insights", "text"))
        client = FakeAnalysisClient({"trends": {"overall_insights": ["a", "b"]}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert client.calls[1]["data"]["text"] == ["a", "b"]
        # only string text goes into the request's text field
        assert client.calls[1]["text"] is None
        assert [w.kind for w in results.warnings] == ["narrowing"]

    @pytest.mark.asyncio
    async def test_transform_applied(self, registry, transforms):
        doc = _two_step("analysis-trends", "analysis-findings", ("overall_insights", "text", "join"))
        client = FakeAnalysisClient({"trends": {"overall_insights": ["a", "b"]}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert client.calls[1]["data"]["text"] == "a, b"
        assert client.calls[1]["text"] == "a, b"
        assert results.warnings == []

    @pytest.mark.asyncio
    async def test_failing_transform_skips_mapping(self, registry, transforms):
        doc = _two_step("analysis-trends", "analysis-recommendations", ("trends", "data", "first"))
        client = FakeAnalysisClient({"trends": {"trends": []}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert client.calls[1]["data"] == {}
        assert results.succeeded("dst")

    @pytest.mark.asyncio
    async def test_unknown_transform_blocks_mapping(self, registry, transforms):
        doc = _two_step("analysis-intent", "analysis-findings", ("label", "text", "shout"))
        client = FakeAnalysisClient({"intent": {"label": "x"}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert "text" not in client.calls[1]["data"]
        assert results.warnings[0].kind == "unknown_transform"
        assert results.warnings[0].blocking


class TestFailures:
    @pytest.mark.asyncio
    async def test_cycle_rejected_before_any_call(self, registry, transforms, cycle_doc):
        client = FakeAnalysisClient()

        with pytest.raises(CycleError) as exc_info:
            await _executor(client, registry, transforms).execute_workflow(parse_workflow(cycle_doc))

        assert set(exc_info.value.cycle) == {"a", "b"}
        assert client.calls == []
        assert metrics.get_counter("workflow_runs_total", labels={"status": "invalid"}) == 1

    @pytest.mark.asyncio
    async def test_failed_node_recorded_and_run_continues(self, registry, transforms, intent_findings_doc):
        client = FakeAnalysisClient({"intent": service_error("intent", "HTTP 500")})

        results = await _executor(client, registry, transforms).execute_workflow(
            parse_workflow(intent_findings_doc), {"source": "ui"}
        )

        assert results["intent"] == {"error": "Analysis 'intent' failed: HTTP 500"}
        assert client.called_types() == ["intent", "findings"]
        assert client.calls[1]["data"] == {"source": "ui"}
        assert results.succeeded("findings")
        assert results.status == "partial"
        assert results.errors() == {"intent": "Analysis 'intent' failed: HTTP 500"}

    @pytest.mark.asyncio
    async def test_unexpected_exception_recorded(self, registry, transforms, independent_doc):
        client = FakeAnalysisClient({"trends": RuntimeError("kaput")})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(independent_doc))

        assert results["trends"] == {"error": "RuntimeError: kaput"}
        assert results.succeeded("patterns")

    @pytest.mark.asyncio
    async def test_function_node_without_function_id(self, registry, transforms):
        doc = {"id": "wf", "nodes": [{"id": "n1", "type": "function", "data": {"nodeType": "function"}}]}
        client = FakeAnalysisClient()

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert client.calls == []
        assert "error" in results["n1"]

    @pytest.mark.asyncio
    async def test_uncatalogued_function_still_called(self, registry, transforms):
        doc = {"id": "wf", "nodes": [fn_node("n1", "analysis-sentiment")]}
        client = FakeAnalysisClient({"sentiment": {"score": 0.4}})

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(doc))

        assert client.called_types() == ["sentiment"]
        assert results["n1"] == {"score": 0.4}


class TestResultSet:
    @pytest.mark.asyncio
    async def test_single_node_yields_single_entry(self, registry, transforms):
        client = FakeAnalysisClient({"intent": {"label": "x"}})
        wf = parse_workflow({"id": "wf", "nodes": [fn_node("only", "analysis-intent")]})

        results = await _executor(client, registry, transforms).execute_workflow(wf, {"text": "hello"})

        assert list(results) == ["only"]
        assert results.to_dict() == {"only": {"label": "x"}}
        assert results.initial_data == {"text": "hello"}

    @pytest.mark.asyncio
    async def test_each_node_attempted_once(self, registry, transforms, independent_doc):
        client = FakeAnalysisClient()

        results = await _executor(client, registry, transforms).execute_workflow(parse_workflow(independent_doc))

        assert sorted(client.called_types()) == ["patterns", "trends"]
        assert sorted(results) == ["patterns", "trends"]

    @pytest.mark.asyncio
    async def test_decoration_nodes_have_no_slot(self, registry, transforms, decorated_doc):
        results = await _executor(FakeAnalysisClient(), registry, transforms).execute_workflow(
            parse_workflow(decorated_doc)
        )

        assert set(results) == {"attrs", "trends", "plan"}

    @pytest.mark.asyncio
    async def test_empty_workflow(self, registry, transforms):
        results = await _executor(FakeAnalysisClient(), registry, transforms).execute_workflow(
            parse_workflow({"id": "empty"})
        )

        assert len(results) == 0
        assert results.status == "completed"

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, registry, transforms, intent_findings_doc):
        await _executor(FakeAnalysisClient(), registry, transforms).execute_workflow(
            parse_workflow(intent_findings_doc)
        )

        assert metrics.get_counter(
            "node_execution_total", labels={"function_id": "analysis-intent", "status": "succeeded"}
        ) == 1
        assert metrics.get_counter("workflow_runs_total", labels={"status": "completed"}) == 1


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_between_nodes(self, registry, transforms, decorated_doc):
        client = FakeAnalysisClient()
        client.on_call = lambda analysis_type: run_cancel.mark_cancelled("run-1")

        results = await _executor(client, registry, transforms).execute_workflow(
            parse_workflow(decorated_doc), run_id="run-1"
        )

        assert client.called_types() == ["attributes"]
        assert results.cancelled
        assert results.status == "cancelled"
        assert list(results) == ["attrs"]
        assert not run_cancel.is_registered("run-1")

    @pytest.mark.asyncio
    async def test_run_without_cancel_completes(self, registry, transforms, decorated_doc):
        client = FakeAnalysisClient()

        results = await _executor(client, registry, transforms).execute_workflow(
            parse_workflow(decorated_doc), run_id="run-2"
        )

        assert not results.cancelled
        assert len(results) == 3
        assert not run_cancel.is_registered("run-2")

    @pytest.mark.asyncio
    async def test_run_id_already_executing_rejected(self, registry, transforms, decorated_doc):
        client = FakeAnalysisClient()
        run_cancel.register("run-3")
        try:
            with pytest.raises(run_cancel.RunAlreadyRegisteredError):
                await _executor(client, registry, transforms).execute_workflow(
                    parse_workflow(decorated_doc), run_id="run-3"
                )
            assert client.calls == []
            assert run_cancel.is_registered("run-3")
        finally:
            run_cancel.deregister("run-3")


class TestExecuteById:
    @pytest.mark.asyncio
    async def test_execute_from_store(self, registry, transforms, intent_findings_doc):
        store = WorkflowStore()
        store.create(parse_workflow(intent_findings_doc))
        client = FakeAnalysisClient({"intent": {"label": "billing_issue"}})

        results = await _executor(client, registry, transforms, store).execute("wf-intent-findings", {"k": 1})

        assert results.workflow_id == "wf-intent-findings"
        assert set(results) == {"intent", "findings"}

    @pytest.mark.asyncio
    async def test_unknown_workflow(self, registry, transforms):
        with pytest.raises(WorkflowNotFoundError):
            await _executor(FakeAnalysisClient(), registry, transforms, WorkflowStore()).execute("missing")

    @pytest.mark.asyncio
    async def test_execute_needs_store(self, registry, transforms):
        with pytest.raises(RuntimeError, match="WorkflowStore"):
            await _executor(FakeAnalysisClient(), registry, transforms).execute("anything")
