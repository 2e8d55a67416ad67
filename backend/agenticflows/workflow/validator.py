"""Static workflow validation — structural errors and data-mapping warnings."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from agenticflows.registry.function_registry import FunctionRegistry
from agenticflows.workflow.compatibility import check_mapping
from agenticflows.workflow.errors import CycleError
from agenticflows.workflow.model import Workflow
from agenticflows.workflow.ordering import order_nodes
from agenticflows.workflow.paths import split_path
from agenticflows.workflow.transforms import TransformRegistry

# Mapping warning kinds whose mapping is skipped at execution time
BLOCKING_KINDS: frozenset[str] = frozenset({"incompatible", "unknown_transform", "transform_mismatch"})


@dataclass
class MappingIssue:
    kind: str
    message: str
    edge_id: str | None = None
    index: int | None = None  # position of the mapping within the edge
    source_output: str | None = None
    target_input: str | None = None
    node_id: str | None = None

    @property
    def blocking(self) -> bool:
        return self.kind in BLOCKING_KINDS

    def as_dict(self) -> dict[str, Any]:
        return {**asdict(self), "blocking": self.blocking}


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[MappingIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def blocked_mappings(self) -> set[tuple[str, int]]:
        """(edge_id, mapping index) pairs that must not be executed."""
        return {
            (w.edge_id, w.index)
            for w in self.warnings
            if w.blocking and w.edge_id is not None and w.index is not None
        }


def validate_workflow(
    wf: Workflow,
    registry: FunctionRegistry,
    transforms: TransformRegistry,
    initial_keys: Iterable[str] = (),
) -> ValidationReport:
    """Return structural errors and per-mapping warnings.  No errors means executable."""
    report = ValidationReport()
    report.errors.extend(structural_errors(wf))
    report.warnings.extend(mapping_issues(wf, registry, transforms))
    report.warnings.extend(missing_required_inputs(wf, registry, initial_keys))
    return report


def structural_errors(wf: Workflow) -> list[str]:
    errors: list[str] = []

    counts = Counter(n.node_id for n in wf.nodes)
    for nid, count in sorted(counts.items()):
        if count > 1:
            errors.append(f"Node id '{nid}' is used by {count} nodes.")

    edge_counts = Counter(e.edge_id for e in wf.edges)
    for eid, count in sorted(edge_counts.items()):
        if count > 1:
            errors.append(f"Edge id '{eid}' is used by {count} edges.")

    all_node_ids = set(counts)
    for edge in wf.edges:
        if edge.source not in all_node_ids:
            errors.append(f"Edge '{edge.edge_id}': source node '{edge.source}' not found.")
        if edge.target not in all_node_ids:
            errors.append(f"Edge '{edge.edge_id}': target node '{edge.target}' not found.")

    for node in wf.function_nodes():
        if not node.function_id:
            errors.append(f"Function node '{node.node_id}' has no functionId.")

    try:
        order_nodes(wf.nodes, wf.edges)
    except CycleError as exc:
        errors.append(str(exc))

    return errors


def mapping_issues(
    wf: Workflow,
    registry: FunctionRegistry,
    transforms: TransformRegistry,
) -> list[MappingIssue]:
    issues: list[MappingIssue] = []

    for edge in wf.edges:
        if not edge.mappings:
            continue
        source_node = wf.node(edge.source)
        target_node = wf.node(edge.target)
        if source_node is None or target_node is None:
            continue  # dangling edge, already a structural error

        source_fn = registry.get(source_node.function_id)
        target_fn = registry.get(target_node.function_id)

        for idx, m in enumerate(edge.mappings):
            def issue(kind: str, message: str) -> MappingIssue:
                return MappingIssue(
                    kind=kind,
                    message=f"Edge '{edge.edge_id}' mapping {idx}: {message}",
                    edge_id=edge.edge_id,
                    index=idx,
                    source_output=m.source_output,
                    target_input=m.target_input,
                )

            if not split_path(m.source_output) or not split_path(m.target_input):
                issues.append(issue("incompatible", "empty source or target path"))
                continue

            if m.transform and m.transform not in transforms:
                issues.append(issue("unknown_transform", f"transform '{m.transform}' is not registered"))
                continue

            if source_fn is None or target_fn is None:
                missing = source_node if source_fn is None else target_node
                issues.append(issue(
                    "unknown_function",
                    f"no descriptor for function '{missing.function_id}' on node '{missing.node_id}'; "
                    f"mapping cannot be type-checked",
                ))
                continue

            out_field = source_fn.output(m.source_output)
            in_field = target_fn.input(m.target_input)
            if out_field is None:
                issues.append(issue(
                    "undeclared_output",
                    f"'{m.source_output}' is not a declared output of {source_fn.function_id}",
                ))
                continue
            if in_field is None:
                issues.append(issue(
                    "undeclared_input",
                    f"'{m.target_input}' is not a declared input of {target_fn.function_id}",
                ))
                continue

            check = check_mapping(out_field, in_field, m.transform, transforms)
            if check.kind:
                issues.append(issue(check.kind, check.message))

    return issues


def missing_required_inputs(
    wf: Workflow,
    registry: FunctionRegistry,
    initial_keys: Iterable[str] = (),
) -> list[MappingIssue]:
    """Required inputs fed neither by an incoming mapping nor by initial data."""
    initial_top = {split_path(k)[0] for k in initial_keys if split_path(k)}
    issues: list[MappingIssue] = []
    for node in wf.function_nodes():
        descriptor = registry.get(node.function_id)
        if descriptor is None:
            continue
        fed = {
            split_path(m.target_input)[0]
            for e in wf.incoming_edges(node.node_id)
            for m in e.mappings
            if split_path(m.target_input)
        }
        for f in descriptor.required_inputs():
            top = split_path(f.path)[0] if split_path(f.path) else f.path
            if top not in fed and top not in initial_top:
                issues.append(MappingIssue(
                    kind="missing_required_input",
                    message=f"Node '{node.node_id}': required input '{f.path}' has no mapping or initial value",
                    node_id=node.node_id,
                    target_input=f.path,
                ))
    return issues
