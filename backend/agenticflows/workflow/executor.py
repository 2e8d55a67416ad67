"""Workflow executor — runs function nodes in dependency order against the analysis service.

Execution is strictly sequential: node N+1 starts only after node N's remote
call returned, so every mapping reads a finished (or failed) upstream slot.

Per node:
  1. gather inputs from upstream results through the incoming edges' mappings
  2. merge the initial data underneath (mapped values win)
  3. call the analysis service
  4. record the result, or ``{"error": message}`` and carry on

Only a cyclic graph stops a run before it starts.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any

from agenticflows.connectors.analysis_client import AnalysisServiceError
from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.services.workflow_service import WorkflowStore
from agenticflows.utils import run_cancel
from agenticflows.utils.logger import bind, ctx_node_id, ctx_run_id, ctx_workflow_id
from agenticflows.utils.metrics import (
    record_mapping_warning,
    record_node_execution,
    record_workflow_completed,
)
from agenticflows.workflow.errors import CycleError, TransformError
from agenticflows.workflow.model import Node, Workflow
from agenticflows.workflow.ordering import order_nodes
from agenticflows.workflow.paths import MISSING, get_path, set_path
from agenticflows.workflow.results import ExecutionResultSet, is_error_marker
from agenticflows.workflow.transforms import TransformRegistry
from agenticflows.workflow.validator import ValidationReport, mapping_issues

logger = logging.getLogger("agenticflows.workflow.executor")


class WorkflowExecutor:
    def __init__(
        self,
        client: Any,
        registry: FunctionRegistry | None = None,
        transforms: TransformRegistry | None = None,
        store: WorkflowStore | None = None,
    ):
        # ``client`` needs an async ``analyze(analysis_type, *, parameters, data, text, workflow_id)``
        self.client = client
        self.registry = registry or FunctionRegistry()
        self.transforms = transforms or TransformRegistry()
        self.store = store

    async def execute(
        self,
        workflow_id: str,
        initial_data: dict[str, Any] | None = None,
        *,
        run_id: str | None = None,
    ) -> ExecutionResultSet:
        """Load *workflow_id* from the store and execute it."""
        if self.store is None:
            raise RuntimeError("WorkflowExecutor.execute needs a WorkflowStore; use execute_workflow")
        wf = self.store.get(workflow_id)
        return await self.execute_workflow(wf, initial_data, run_id=run_id)

    async def execute_workflow(
        self,
        wf: Workflow,
        initial_data: dict[str, Any] | None = None,
        *,
        run_id: str | None = None,
    ) -> ExecutionResultSet:
        started = time.monotonic()
        with bind(ctx_workflow_id, wf.workflow_id or None), bind(ctx_run_id, run_id):
            try:
                ordered = order_nodes(wf.nodes, wf.edges)
            except CycleError as exc:
                logger.error("Workflow %s rejected: %s", wf.workflow_id, exc)
                record_workflow_completed(time.monotonic() - started, "invalid")
                raise

            results = ExecutionResultSet(wf.workflow_id, initial_data)
            results.order = [n.node_id for n in ordered]
            results.warnings = mapping_issues(wf, self.registry, self.transforms)
            for w in results.warnings:
                record_mapping_warning(w.kind)
                logger.warning("Mapping warning (%s): %s", w.kind, w.message)
            blocked = ValidationReport(warnings=results.warnings).blocked_mappings()

            logger.info(
                "Executing workflow %s: %d function node(s), order=%s",
                wf.workflow_id, len(ordered), results.order,
            )

            if run_id:
                run_cancel.register(run_id)
            try:
                for node in ordered:
                    if run_id and run_cancel.is_cancelled(run_id):
                        results.cancelled = True
                        logger.info(
                            "Run %s cancelled before node %s; %d of %d node(s) attempted",
                            run_id, node.node_id, len(results), len(ordered),
                        )
                        break
                    await self._run_node(wf, node, results, blocked)
            finally:
                if run_id:
                    run_cancel.deregister(run_id)

            record_workflow_completed(time.monotonic() - started, results.status)
            logger.info(
                "Workflow %s finished: status=%s failed=%s",
                wf.workflow_id, results.status, sorted(results.errors()),
            )
            return results

    def gather_inputs(
        self,
        wf: Workflow,
        node: Node,
        results: ExecutionResultSet,
        blocked: set[tuple[str | None, int | None]] | None = None,
    ) -> dict[str, Any]:
        """Build the input object for *node* from upstream results and initial data."""
        blocked = blocked or set()
        inputs: dict[str, Any] = {}

        for edge in wf.incoming_edges(node.node_id):
            if not edge.mappings:
                continue
            upstream = results.get(edge.source)
            if upstream is None or is_error_marker(upstream):
                logger.debug("Node %s: no usable result from upstream %s", node.node_id, edge.source)
                continue

            for idx, m in enumerate(edge.mappings):
                if (edge.edge_id, idx) in blocked:
                    continue
                value = get_path(upstream, m.source_output)
                if value is MISSING:
                    continue
                if m.transform:
                    transform = self.transforms.get(m.transform)
                    if transform is None:
                        continue
                    try:
                        value = transform.apply(value)
                    except TransformError as exc:
                        logger.warning("Node %s: mapping %s skipped: %s", node.node_id, m.source_output, exc)
                        continue
                # upstream slots are write-once; later mappings may write beneath this value
                set_path(inputs, m.target_input, copy.deepcopy(value))

        for key, value in results.initial_data.items():
            inputs.setdefault(key, copy.deepcopy(value))
        return inputs

    async def _run_node(
        self,
        wf: Workflow,
        node: Node,
        results: ExecutionResultSet,
        blocked: set[tuple[str | None, int | None]],
    ) -> None:
        with bind(ctx_node_id, node.node_id):
            await self._attempt(wf, node, results, blocked)

    async def _attempt(
        self,
        wf: Workflow,
        node: Node,
        results: ExecutionResultSet,
        blocked: set[tuple[str | None, int | None]],
    ) -> None:
        function_id = node.function_id or "unknown"
        inputs = self.gather_inputs(wf, node, results, blocked)

        analysis_type = self.registry.analysis_type_for(node.function_id) if node.function_id else None
        if not analysis_type:
            results.record_error(node.node_id, f"Node '{node.node_id}' has no resolvable analysis function")
            record_node_execution(function_id, "failed")
            return

        parameters = node.config.get("parameters")
        text = inputs.get("text")
        started = time.monotonic()
        try:
            response = await self.client.analyze(
                analysis_type,
                parameters=parameters if isinstance(parameters, dict) else {},
                data=inputs,
                text=text if isinstance(text, str) else None,
                workflow_id=wf.workflow_id or None,
            )
        except AnalysisServiceError as exc:
            logger.warning("Node %s (%s) failed: %s", node.node_id, analysis_type, exc)
            results.record_error(node.node_id, str(exc))
            record_node_execution(function_id, "failed", time.monotonic() - started)
            return
        except Exception as exc:
            logger.exception("Node %s (%s) raised unexpectedly", node.node_id, analysis_type)
            results.record_error(node.node_id, f"{exc.__class__.__name__}: {exc}")
            record_node_execution(function_id, "failed", time.monotonic() - started)
            return

        result = response.results if response.results is not None else {}
        results.record(node.node_id, result)
        record_node_execution(function_id, "succeeded", time.monotonic() - started)
        self._log_undeclared_outputs(node, result)

    def _log_undeclared_outputs(self, node: Node, result: Any) -> None:
        descriptor = self.registry.get(node.function_id)
        if descriptor is None:
            return
        missing = [f.path for f in descriptor.outputs if get_path(result, f.path) is MISSING]
        if missing:
            logger.debug(
                "Node %s: result lacks declared output(s) %s of %s (schema v%s)",
                node.node_id, missing, descriptor.function_id, descriptor.schema_version,
            )
