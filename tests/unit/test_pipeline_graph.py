"""Tests for the phase dependency graph."""

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from worker.pipeline.graph import PhaseExecutionError, PhaseGraph, PhaseNode


def constant(value: Any, delay: float = 0.0):
    async def run(_inputs: Mapping[str, Any]) -> Any:
        if delay:
            await asyncio.sleep(delay)
        return value

    return run


def failing(error: Exception, delay: float = 0.0):
    async def run(_inputs: Mapping[str, Any]) -> Any:
        if delay:
            await asyncio.sleep(delay)
        raise error

    return run


class TestPhaseGraphValidation:
    """Tests for graph construction."""

    def test_duplicate_phase(self) -> None:
        """Phase names are unique."""
        with pytest.raises(ValueError, match="Duplicate"):
            PhaseGraph([PhaseNode("a", constant(1)), PhaseNode("a", constant(2))])

    def test_unknown_dependency(self) -> None:
        """Dependencies must name declared phases."""
        with pytest.raises(ValueError, match="unknown"):
            PhaseGraph([PhaseNode("a", constant(1), depends_on=("missing",))])

    def test_cycle(self) -> None:
        """Cycles are rejected."""
        with pytest.raises(ValueError, match="cycle"):
            PhaseGraph(
                [
                    PhaseNode("a", constant(1), depends_on=("c",)),
                    PhaseNode("b", constant(1), depends_on=("a",)),
                    PhaseNode("c", constant(1), depends_on=("b",)),
                ]
            )

    def test_self_dependency(self) -> None:
        """A phase cannot depend on itself."""
        with pytest.raises(ValueError):
            PhaseGraph([PhaseNode("a", constant(1), depends_on=("a",))])

    def test_stages_by_longest_path(self) -> None:
        """A node sits one level below its deepest dependency."""
        graph = PhaseGraph(
            [
                PhaseNode("technical", constant(1)),
                PhaseNode("branding", constant(1)),
                PhaseNode("market", constant(1)),
                PhaseNode(
                    "sales_pitch", constant(1), depends_on=("technical", "branding", "market")
                ),
                PhaseNode("campaign_export", constant(1), depends_on=("technical", "market")),
                PhaseNode("summary", constant(1), depends_on=("sales_pitch", "technical")),
            ]
        )

        assert graph.stages() == [
            ["technical", "branding", "market"],
            ["sales_pitch", "campaign_export"],
            ["summary"],
        ]

    def test_empty_graph(self) -> None:
        """No phases, no stages."""
        assert PhaseGraph([]).stages() == []


class TestPhaseGraphExecute:
    """Tests for graph execution."""

    @pytest.mark.asyncio
    async def test_feeds_dependency_outputs(self) -> None:
        """Each phase receives exactly its dependencies' outputs."""
        seen: dict[str, dict] = {}

        def record(name: str, value: Any):
            async def run(inputs: Mapping[str, Any]) -> Any:
                seen[name] = dict(inputs)
                return value

            return run

        graph = PhaseGraph(
            [
                PhaseNode("a", record("a", 1)),
                PhaseNode("b", record("b", 2)),
                PhaseNode("c", record("c", 3), depends_on=("a", "b")),
                PhaseNode("d", record("d", 4), depends_on=("a",)),
            ]
        )

        results = await graph.execute()

        assert results == {"a": 1, "b": 2, "c": 3, "d": 4}
        assert seen["a"] == {}
        assert seen["c"] == {"a": 1, "b": 2}
        assert seen["d"] == {"a": 1}

    @pytest.mark.asyncio
    async def test_stage_join(self) -> None:
        """No dependent phase starts before the slowest prerequisite finishes."""
        events: list[str] = []

        def tracked(name: str, delay: float):
            async def run(_inputs: Mapping[str, Any]) -> str:
                events.append(f"start:{name}")
                await asyncio.sleep(delay)
                events.append(f"end:{name}")
                return name

            return run

        graph = PhaseGraph(
            [
                PhaseNode("technical", tracked("technical", 0.01)),
                PhaseNode("branding", tracked("branding", 0.05)),
                PhaseNode("market", tracked("market", 0.005)),
                PhaseNode(
                    "sales_pitch",
                    tracked("sales_pitch", 0),
                    depends_on=("technical", "branding", "market"),
                ),
                PhaseNode(
                    "campaign_export",
                    tracked("campaign_export", 0),
                    depends_on=("technical", "market"),
                ),
            ]
        )

        results = await graph.execute()

        # All analysis phases start before any of them ends
        assert events[:3] == ["start:technical", "start:branding", "start:market"]
        last_analysis_end = events.index("end:branding")
        assert events.index("start:sales_pitch") > last_analysis_end
        assert events.index("start:campaign_export") > last_analysis_end
        # Results are keyed by name, not by completion order
        assert list(results) == [
            "technical",
            "branding",
            "market",
            "sales_pitch",
            "campaign_export",
        ]

    @pytest.mark.asyncio
    async def test_on_stage_callback(self) -> None:
        """The callback sees every stage before it runs."""
        stages: list[tuple[int, list[str]]] = []
        graph = PhaseGraph(
            [
                PhaseNode("a", constant(1)),
                PhaseNode("b", constant(2), depends_on=("a",)),
            ]
        )

        await graph.execute(on_stage=lambda index, names: stages.append((index, names)))

        assert stages == [(0, ["a"]), (1, ["b"])]

    @pytest.mark.asyncio
    async def test_failure_names_phase(self) -> None:
        """A failing phase is reported with its cause."""
        error = RuntimeError("boom")
        graph = PhaseGraph(
            [
                PhaseNode("a", constant(1)),
                PhaseNode("b", failing(error)),
            ]
        )

        with pytest.raises(PhaseExecutionError) as exc_info:
            await graph.execute()

        assert exc_info.value.phase == "b"
        assert exc_info.value.cause is error

    @pytest.mark.asyncio
    async def test_first_failure_in_declaration_order(self) -> None:
        """With several failures the earliest declared phase is reported."""
        graph = PhaseGraph(
            [
                PhaseNode("a", constant(1)),
                PhaseNode("b", failing(RuntimeError("slow"), delay=0.02)),
                PhaseNode("c", failing(RuntimeError("fast"))),
            ]
        )

        with pytest.raises(PhaseExecutionError) as exc_info:
            await graph.execute()

        assert exc_info.value.phase == "b"

    @pytest.mark.asyncio
    async def test_failure_stops_later_stages(self) -> None:
        """Dependents of a failed stage never run."""
        ran: list[str] = []

        async def later(_inputs: Mapping[str, Any]) -> None:
            ran.append("later")

        graph = PhaseGraph(
            [
                PhaseNode("a", failing(ValueError("bad"))),
                PhaseNode("b", later, depends_on=("a",)),
            ]
        )

        with pytest.raises(PhaseExecutionError):
            await graph.execute()

        assert ran == []
