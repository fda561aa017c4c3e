"""Phase dependency graph and stage-wise scheduler.

Nodes are phases, edges are data dependencies. Nodes are grouped into
levels by their longest dependency chain; each level runs concurrently and
the next level starts only after every node of the current one resolved.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

PhaseFn = Callable[[Mapping[str, Any]], Awaitable[Any]]
StageCallback = Callable[[int, list[str]], None]


class PhaseExecutionError(Exception):
    """A phase raised; carries the phase name and original error."""

    def __init__(self, phase: str, cause: BaseException):
        self.phase = phase
        self.cause = cause
        super().__init__(f"Phase '{phase}' failed: {cause}")


@dataclass(frozen=True)
class PhaseNode:
    """One phase: a coroutine fed the outputs of its dependencies."""

    name: str
    run: PhaseFn
    depends_on: tuple[str, ...] = ()


class PhaseGraph:
    """A validated DAG of phases."""

    def __init__(self, nodes: Sequence[PhaseNode]):
        self._nodes: dict[str, PhaseNode] = {}
        for node in nodes:
            if node.name in self._nodes:
                raise ValueError(f"Duplicate phase: {node.name}")
            self._nodes[node.name] = node

        for node in nodes:
            unknown = [d for d in node.depends_on if d not in self._nodes]
            if unknown:
                raise ValueError(f"Phase '{node.name}' depends on unknown phases: {unknown}")

        self._levels = self._compute_levels()

    @property
    def nodes(self) -> list[PhaseNode]:
        return list(self._nodes.values())

    def _compute_levels(self) -> list[list[PhaseNode]]:
        level_of: dict[str, int] = {}
        visiting: set[str] = set()

        def visit(name: str) -> int:
            if name in level_of:
                return level_of[name]
            if name in visiting:
                raise ValueError(f"Dependency cycle through phase '{name}'")
            visiting.add(name)
            deps = self._nodes[name].depends_on
            level = 1 + max((visit(d) for d in deps), default=-1)
            visiting.discard(name)
            level_of[name] = level
            return level

        for name in self._nodes:
            visit(name)

        levels: list[list[PhaseNode]] = [[] for _ in range(max(level_of.values(), default=-1) + 1)]
        for name, node in self._nodes.items():
            levels[level_of[name]].append(node)
        return levels

    def stages(self) -> list[list[str]]:
        """Phase names per stage, in execution order."""
        return [[n.name for n in level] for level in self._levels]

    async def execute(self, on_stage: StageCallback | None = None) -> dict[str, Any]:
        """
        Run every stage in order, each stage's phases concurrently.

        Args:
            on_stage: Called with (stage index, phase names) before a stage starts

        Returns:
            Outputs keyed by phase name

        Raises:
            PhaseExecutionError: for the first failing phase (declaration
                order) of the first stage that had a failure
        """
        results: dict[str, Any] = {}

        for index, level in enumerate(self._levels):
            names = [n.name for n in level]
            if on_stage:
                on_stage(index, names)
            logger.debug("stage_started", stage=index, phases=names)

            outputs = await asyncio.gather(
                *(node.run({d: results[d] for d in node.depends_on}) for node in level),
                return_exceptions=True,
            )

            for node, output in zip(level, outputs, strict=True):
                if isinstance(output, BaseException):
                    raise PhaseExecutionError(node.name, output) from output

            for node, output in zip(level, outputs, strict=True):
                results[node.name] = output

        return results
