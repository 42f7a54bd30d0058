"""
Application Layer Tests

Architectural Intent:
- Tests for the sequential workflow runner
- Verifies ordering, result passing and failure reporting
"""

import asyncio

import pytest

from surrogate.application.orchestration import Workflow, WorkflowStep
from surrogate.domain.errors import WorkflowDefinitionError, WorkflowStepError


class TestWorkflow:
    """Tests for dependency-ordered step execution."""

    @pytest.mark.asyncio
    async def test_sequential_execution(self):
        execution_order = []

        async def step_a(context, results):
            execution_order.append("a")
            return "a_result"

        async def step_b(context, results):
            execution_order.append("b")
            return results["a"] + "+b"

        workflow = Workflow(
            [
                WorkflowStep("a", step_a),
                WorkflowStep("b", step_b, depends_on=["a"]),
            ]
        )

        result = await workflow.run({})

        assert execution_order == ["a", "b"]
        assert result == {"a": "a_result", "b": "a_result+b"}

    def test_order_respects_dependencies_over_declaration(self):
        async def noop(context, results):
            return None

        workflow = Workflow(
            [
                WorkflowStep("capture", noop, depends_on=["launch"]),
                WorkflowStep("launch", noop),
                WorkflowStep("wait", noop, depends_on=["launch"]),
            ]
        )

        assert workflow.order() == ["launch", "capture", "wait"]

    def test_independent_steps_keep_declaration_order(self):
        async def noop(context, results):
            return None

        workflow = Workflow([WorkflowStep(n, noop) for n in ("c", "a", "b")])

        assert workflow.order() == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_steps_never_overlap(self):
        running = []
        overlaps = []

        async def step(context, results):
            if running:
                overlaps.append(list(running))
            running.append(1)
            running.pop()

        workflow = Workflow([WorkflowStep(n, step) for n in ("a", "b", "c")])
        await workflow.run({})

        assert overlaps == []

    @pytest.mark.asyncio
    async def test_failure_stops_run_and_names_step(self):
        executed = []
        cause = RuntimeError("remote error")

        async def ok(context, results):
            executed.append("ok")
            return "done"

        async def failing(context, results):
            raise cause

        async def never(context, results):
            executed.append("never")

        workflow = Workflow(
            [
                WorkflowStep("ok", ok),
                WorkflowStep("failing", failing, depends_on=["ok"]),
                WorkflowStep("never", never, depends_on=["failing"]),
            ]
        )

        with pytest.raises(WorkflowStepError) as exc_info:
            await workflow.run({})

        assert exc_info.value.step == "failing"
        assert exc_info.value.cause is cause
        assert executed == ["ok"]
        assert workflow.completed == {"ok": "done"}

    @pytest.mark.asyncio
    async def test_current_names_step_being_awaited(self):
        started = asyncio.Event()

        async def quick(context, results):
            return None

        async def slow(context, results):
            started.set()
            await asyncio.sleep(3600)

        workflow = Workflow(
            [WorkflowStep("quick", quick), WorkflowStep("slow", slow, depends_on=["quick"])]
        )
        assert workflow.current is None

        task = asyncio.create_task(workflow.run({}))
        await started.wait()
        assert workflow.current == "slow"
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert workflow.current == "slow"
        assert workflow.completed == {"quick": None}

    @pytest.mark.asyncio
    async def test_context_shared_between_steps(self):
        async def writer(context, results):
            context["seen"] = "writer"

        async def reader(context, results):
            return context["seen"]

        workflow = Workflow(
            [WorkflowStep("writer", writer), WorkflowStep("reader", reader, depends_on=["writer"])]
        )
        result = await workflow.run({})
        assert result["reader"] == "writer"

    def test_cycle_detection(self):
        async def noop(context, results):
            return None

        workflow = Workflow(
            [
                WorkflowStep("a", noop, depends_on=["b"]),
                WorkflowStep("b", noop, depends_on=["a"]),
            ]
        )

        with pytest.raises(WorkflowDefinitionError, match="Circular"):
            workflow.order()

    def test_unknown_dependency(self):
        async def noop(context, results):
            return None

        workflow = Workflow([WorkflowStep("a", noop, depends_on=["missing"])])

        with pytest.raises(WorkflowDefinitionError, match="unknown step"):
            workflow.order()

    def test_duplicate_step_name(self):
        async def noop(context, results):
            return None

        with pytest.raises(WorkflowDefinitionError, match="Duplicate"):
            Workflow([WorkflowStep("a", noop), WorkflowStep("a", noop)])
