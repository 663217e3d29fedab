"""Reference graph checks.

The graph is keyed by the registry's node indices: ``adjacency[i]`` lists the
nodes model ``i`` selects from. An edge A -> B exists when A references B.

Checks:
- unresolved references (names that are neither a model nor a source table)
- layer violations (edges the source layer is not allowed to take)
- cycles (with the full ordered path of each cycle)
- orphans (models with no edges at all; warning only)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple

from layerlint.lib.descriptors import Layer
from layerlint.lib.registry import ModelRegistry, RegistryNode
from layerlint.lib.report import Severity, Violation, ViolationKind
from layerlint.lib.rules import ALLOWED_REFERENCES

logger = logging.getLogger(__name__)

__all__ = [
    "DependencyGraph",
    "UtilityPolicy",
    "check_cycles",
    "check_graph",
    "check_layer_edges",
    "check_orphans",
    "check_unresolved",
    "find_cycles",
]

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class UtilityPolicy:
    """How utility models take part in graph checks.

    Attributes:
        layer_checks: Check edges from and to utility models against the
            layer table (utility models may still select from anything)
        cycle_checks: Include utility models in cycle detection
    """

    layer_checks: bool = False
    cycle_checks: bool = True


class DependencyGraph:
    """Directed reference graph over a registry, stored as index lists."""

    def __init__(
        self,
        registry: ModelRegistry,
        adjacency: Tuple[Tuple[int, ...], ...],
        unresolved: Tuple[Tuple[int, str], ...] = (),
    ) -> None:
        self.registry = registry
        self.adjacency = adjacency
        self.unresolved = unresolved

        inbound: List[List[int]] = [[] for _ in adjacency]
        for src, targets in enumerate(adjacency):
            for dst in targets:
                inbound[dst].append(src)
        self.inbound: Tuple[Tuple[int, ...], ...] = tuple(tuple(x) for x in inbound)

    @classmethod
    def from_registry(cls, registry: ModelRegistry) -> "DependencyGraph":
        adjacency: List[Tuple[int, ...]] = []
        unresolved: List[Tuple[int, str]] = []

        for node in registry.nodes:
            targets: List[int] = []
            if node.model is not None:
                for ref in node.model.references:
                    idx = registry.index_of(ref)
                    if idx is None:
                        unresolved.append((node.index, ref))
                    else:
                        targets.append(idx)
            adjacency.append(tuple(targets))

        return cls(registry, tuple(adjacency), tuple(unresolved))

    def __len__(self) -> int:
        return len(self.adjacency)

    def node(self, index: int) -> RegistryNode:
        return self.registry.nodes[index]

    def edges(self) -> Iterator[Tuple[int, int]]:
        for src, targets in enumerate(self.adjacency):
            for dst in targets:
                yield src, dst

    def components(self, skip: FrozenSet[int] = frozenset()) -> List[List[int]]:
        """Weakly connected components, ordered by their lowest index."""
        seen = set(skip)
        components: List[List[int]] = []

        for start in range(len(self.adjacency)):
            if start in seen:
                continue
            seen.add(start)
            stack = [start]
            members = []
            while stack:
                current = stack.pop()
                members.append(current)
                for nxt in self.adjacency[current] + self.inbound[current]:
                    if nxt not in seen:
                        seen.add(nxt)
                        stack.append(nxt)
            components.append(sorted(members))

        return components


def _canonical(cycle: Tuple[int, ...]) -> Tuple[int, ...]:
    """Rotate a cycle so its lowest index comes first."""
    pivot = cycle.index(min(cycle))
    return cycle[pivot:] + cycle[:pivot]


def find_cycles(
    adjacency: Sequence[Sequence[int]],
    roots: Iterable[int],
    skip: FrozenSet[int] = frozenset(),
) -> List[Tuple[int, ...]]:
    """Depth-first search with recursion-stack marking.

    Every back edge closes a cycle; the cycle is the part of the current
    path from the back edge's target to the top of the stack. Cycles are
    returned in discovery order with rotations removed.

    Only cycles closed by a back edge are reported. A cycle that runs
    through a node already finished by the search is not listed on its
    own, so a graph is reported cyclic whenever it is, but not every
    elementary cycle is enumerated.

    Example:
        >>> find_cycles([(1,), (2,), (0,)], roots=[0])
        [(0, 1, 2)]
    """
    state: Dict[int, int] = {}
    cycles: List[Tuple[int, ...]] = []
    found = set()

    for root in roots:
        if root in skip or state.get(root, _WHITE) != _WHITE:
            continue

        state[root] = _GRAY
        path = [root]
        position = {root: 0}
        stack = [(root, iter(adjacency[root]))]

        while stack:
            current, successors = stack[-1]
            descended = False

            for nxt in successors:
                if nxt in skip:
                    continue
                nxt_state = state.get(nxt, _WHITE)
                if nxt_state == _GRAY:
                    cycle = tuple(path[position[nxt]:])
                    key = _canonical(cycle)
                    if key not in found:
                        found.add(key)
                        cycles.append(cycle)
                elif nxt_state == _WHITE:
                    state[nxt] = _GRAY
                    position[nxt] = len(path)
                    path.append(nxt)
                    stack.append((nxt, iter(adjacency[nxt])))
                    descended = True
                    break

            if not descended:
                stack.pop()
                path.pop()
                del position[current]
                state[current] = _BLACK

    return cycles


def check_unresolved(graph: DependencyGraph) -> List[Violation]:
    """References that name neither a model nor a source table."""
    violations: List[Violation] = []
    for src, ref in graph.unresolved:
        violations.append(
            Violation(
                kind=ViolationKind.UNRESOLVED_REFERENCE,
                rule="reference.unresolved",
                model=graph.node(src).name,
                reference=ref,
                message=f"References '{ref}', which is not a declared model or source table",
            )
        )
    return violations


def check_layer_edges(
    graph: DependencyGraph,
    policy: UtilityPolicy = UtilityPolicy(),
) -> List[Violation]:
    """One violation per edge its source layer is not allowed to take."""
    violations: List[Violation] = []

    for src_idx, dst_idx in graph.edges():
        src = graph.node(src_idx)
        dst = graph.node(dst_idx)

        if not policy.layer_checks and Layer.UTILITY in (src.layer, dst.layer):
            continue

        allowed = ALLOWED_REFERENCES.get(src.layer, frozenset())
        if dst.layer in allowed:
            continue

        allowed_names = ", ".join(sorted(layer.value for layer in allowed)) or "nothing"
        violations.append(
            Violation(
                kind=ViolationKind.LAYER,
                rule=f"layer.{src.layer.value}",
                model=src.name,
                reference=dst.name,
                message=(
                    f"{src.layer.value} model selects from {dst.layer.value} '{dst.name}'; "
                    f"{src.layer.value} models may only select from: {allowed_names}"
                ),
            )
        )

    return violations


def _cycle_violation(graph: DependencyGraph, cycle: Tuple[int, ...]) -> Violation:
    names = tuple(graph.node(i).name for i in cycle)
    if len(names) == 1:
        message = "Model references itself"
    else:
        message = "Reference cycle: " + " -> ".join(names + (names[0],))
    return Violation(
        kind=ViolationKind.CYCLE,
        rule="graph.cycle",
        model=names[0],
        path=names,
        message=message,
    )


def check_cycles(
    graph: DependencyGraph,
    policy: UtilityPolicy = UtilityPolicy(),
    workers: int = 1,
) -> List[Violation]:
    """Report every cycle found, with its full path.

    Weakly connected components share no edges, so each is searched on its
    own, in parallel when ``workers > 1``. Results are merged in component
    order.
    """
    skip: FrozenSet[int] = frozenset()
    if not policy.cycle_checks:
        skip = frozenset(n.index for n in graph.registry.nodes if n.layer == Layer.UTILITY)

    components = [c for c in graph.components(skip) if len(c) > 1 or c[0] in graph.adjacency[c[0]]]

    if workers <= 1 or len(components) <= 1:
        per_component = [find_cycles(graph.adjacency, c, skip) for c in components]
    else:
        results: Dict[int, List[Tuple[int, ...]]] = {}
        with ThreadPoolExecutor(max_workers=min(workers, len(components))) as executor:
            future_to_component = {
                executor.submit(find_cycles, graph.adjacency, component, skip): i
                for i, component in enumerate(components)
            }
            for future in as_completed(future_to_component):
                results[future_to_component[future]] = future.result()
        per_component = [results[i] for i in range(len(components))]

    return [
        _cycle_violation(graph, cycle)
        for cycles in per_component
        for cycle in cycles
    ]


def check_orphans(graph: DependencyGraph) -> List[Violation]:
    """Models with no inbound and no outbound edges (warning)."""
    violations: List[Violation] = []
    for node in graph.registry.nodes:
        if not node.is_model:
            continue
        if graph.adjacency[node.index] or graph.inbound[node.index]:
            continue
        violations.append(
            Violation(
                kind=ViolationKind.ORPHAN,
                rule="graph.orphan",
                model=node.name,
                severity=Severity.WARNING,
                message="Model neither references nor is referenced by anything; a reference may be missing",
            )
        )
    return violations


def check_graph(
    registry: ModelRegistry,
    policy: Optional[UtilityPolicy] = None,
    workers: int = 1,
    graph: Optional[DependencyGraph] = None,
) -> List[Violation]:
    """Run every graph check.

    Returns:
        Unresolved references, layer violations, cycles, then orphans
    """
    policy = policy or UtilityPolicy()
    graph = graph or DependencyGraph.from_registry(registry)

    violations: List[Violation] = []
    violations.extend(check_unresolved(graph))
    violations.extend(check_layer_edges(graph, policy))
    violations.extend(check_cycles(graph, policy, workers))
    violations.extend(check_orphans(graph))
    return violations
