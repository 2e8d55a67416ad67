"""Execution ordering — depth-first topological sort of function nodes."""

from __future__ import annotations

from agenticflows.workflow.errors import CycleError
from agenticflows.workflow.model import Edge, Node


def order_nodes(nodes: list[Node], edges: list[Edge]) -> list[Node]:
    """Return the function nodes of the graph in dependency order.

    Every node is emitted after all of its upstream function nodes.  Ties are
    broken by insertion order of ``nodes`` and ``edges``, so identical input
    always yields the same sequence.  Raises ``CycleError`` when the function
    nodes do not form a DAG.

    Non-function nodes never appear in the result.  An edge from one of them
    into a function node is followed but contributes nothing: the decoration
    node has no dependencies of its own and no place in the order.
    """
    function_nodes: dict[str, Node] = {n.node_id: n for n in nodes if n.is_function}

    dependencies: dict[str, list[str]] = {nid: [] for nid in function_nodes}
    for edge in edges:
        if edge.target in dependencies:
            dependencies[edge.target].append(edge.source)

    visited: set[str] = set()
    in_progress: set[str] = set()
    ordered: list[Node] = []

    # Iterative DFS: ``path`` holds the nodes being visited and ``pending`` the
    # rest of their dependencies, so chain length is not bounded by recursion.
    for root in function_nodes:
        if root in visited:
            continue
        in_progress.add(root)
        path: list[str] = [root]
        pending = [iter(dependencies[root])]

        while pending:
            dep = next(pending[-1], None)
            if dep is None:
                done = path.pop()
                pending.pop()
                in_progress.discard(done)
                visited.add(done)
                node = function_nodes.get(done)
                if node is not None:
                    ordered.append(node)
                continue
            if dep in visited:
                continue
            if dep in in_progress:
                # The path follows dependencies (target -> source); report the
                # cycle in edge direction.
                cycle = path[path.index(dep):] + [dep]
                raise CycleError(dep, list(reversed(cycle)))
            in_progress.add(dep)
            path.append(dep)
            pending.append(iter(dependencies.get(dep, [])))

    return ordered
