# tests/test_calculation_task.py
from __future__ import annotations

import pytest

from ponc_planner.calculation_task import CalculationTask, TaskState

from conftest import CATALOG, make_args


def test_task_runs_to_completion(catalog_args):
    with CalculationTask(catalog_args) as task:
        assert task.state is TaskState.IDLE
        assert task.get_result() is None

        task.start()
        assert task.wait(timeout=60.0)

        assert not task.is_running()
        assert task.state is TaskState.COMPLETED
        assert task.progress == 1.0
        assert task.frontier[4] == pytest.approx(3.0)

        forest = task.get_result()
        assert forest is not None
        assert sum(t.num_clients for t in forest) == 4

        # Ownership moved to the caller
        assert task.get_result() is None


def test_task_copies_its_arguments(catalog_args):
    task = CalculationTask(catalog_args)
    catalog_args.family_nodes.clear()
    catalog_args.input_nodes[0].outputs.append(123)

    task.start()
    task.wait()
    forest = task.get_result()
    task.close()

    assert forest[0].outputs == [0]
    assert forest[0].num_clients == 4


def test_stop_before_start_cancels_and_returns_inputs():
    args = make_args(-15.0, -10.0, 4, [[0.0]], CATALOG)
    task = CalculationTask(args)
    task.stop()
    task.start()
    task.wait()

    assert task.state is TaskState.CANCELLED
    forest = task.get_result()
    assert forest[0].child_nodes == {}
    assert task.frontier == {}
    task.close()


def test_task_cannot_start_twice(splitter_args):
    with CalculationTask(splitter_args) as task:
        task.start()
        with pytest.raises(RuntimeError, match="already been started"):
            task.start()


def test_wait_without_start_returns_false(splitter_args):
    task = CalculationTask(splitter_args)
    assert task.wait(timeout=0.01) is False
    assert not task.is_running()
    task.close()


def test_close_stops_running_task():
    # Enough levels and templates to keep the worker busy for a while
    templates = [
        (f"splitter_1x{n}", [-(3.0 + 0.25 * n)] * n, float(n)) for n in range(2, 9)
    ] + [("attenuator", [-0.25], 0.1)]
    args = make_args(-40.0, -30.0, 16, [[0.0]], templates)

    task = CalculationTask(args)
    task.start()
    task.close()

    assert not task.is_running()
    assert task.state in (TaskState.CANCELLED, TaskState.COMPLETED)
    assert task.get_result() is not None
