import random
import unittest

import networkx as nx

from pert.engine import (
    PertScheduler,
    build_graph,
    ensure_acyclic,
    fastest_begin,
    find_end,
    find_start,
    latest_finish,
)
from pert.errors import (
    CyclicNetworkError,
    DuplicateEndNodeError,
    DuplicateStartNodeError,
    NoEndNodeError,
    NoStartNodeError,
    PertError,
)
from pert.models import Event, TaskRow

SAMPLE_ROWS = [
    TaskRow(1, 2, 1, "task1"),
    TaskRow(2, 3, 3, "task2"),
    TaskRow(1, 3, 5, "task3"),
    TaskRow(1, 4, 10, "task4"),
    TaskRow(3, 4, 2, "task5"),
]

DIAMOND_ROWS = [
    TaskRow(1, 2, 1, "a"),
    TaskRow(1, 3, 5, "b"),
    TaskRow(2, 3, 2, "c"),
    TaskRow(3, 4, 3, "d"),
]


def random_dag_rows(rng, size):
    """Random network 1..size with a single start (1) and a single end (size)."""
    rows = []
    for u in range(1, size):
        successors = {rng.randint(u + 1, size)}
        for v in range(u + 1, size + 1):
            if rng.random() < 0.3:
                successors.add(v)
        for v in sorted(successors):
            rows.append(TaskRow(u, v, rng.randint(0, 9), f"t{u}_{v}"))
    for v in range(2, size + 1):
        if not any(r.to_event == v for r in rows):
            rows.append(TaskRow(rng.randint(1, v - 1), v, rng.randint(0, 9), f"t_in{v}"))
    return rows


class TestNetworkBuilder(unittest.TestCase):
    def test_one_node_per_label_and_one_edge_per_row(self):
        graph = build_graph(SAMPLE_ROWS)
        self.assertEqual(list(graph.nodes), [1, 2, 3, 4])
        self.assertEqual(graph.number_of_edges(), 5)

        task = graph.edges[1, 4, 3]["task"]
        self.assertEqual(task.name, "task4")
        self.assertEqual(task.duration, 10)
        self.assertEqual(task.total_float, 0)
        self.assertEqual(task.free_float, 0)

    def test_parallel_tasks_are_kept(self):
        graph = build_graph([TaskRow(1, 2, 3, "x"), TaskRow(1, 2, 5, "y")])
        self.assertEqual(graph.number_of_edges(), 2)
        self.assertEqual(graph.number_of_nodes(), 2)


class TestTopologyValidator(unittest.TestCase):
    def test_single_start_and_end(self):
        graph = build_graph(SAMPLE_ROWS)
        self.assertEqual(find_start(graph), 1)
        self.assertEqual(find_end(graph), 4)

    def test_duplicate_start(self):
        graph = build_graph([TaskRow(1, 3, 1, "a"), TaskRow(2, 3, 1, "b")])
        with self.assertRaises(DuplicateStartNodeError) as ctx:
            find_start(graph)
        self.assertEqual(sorted(ctx.exception.nodes), [1, 2])

    def test_duplicate_end(self):
        graph = build_graph([TaskRow(1, 2, 1, "a"), TaskRow(1, 3, 1, "b")])
        with self.assertRaises(DuplicateEndNodeError) as ctx:
            find_end(graph)
        self.assertEqual(sorted(ctx.exception.nodes), [2, 3])

    def test_no_start(self):
        graph = build_graph([TaskRow(1, 2, 1, "a"), TaskRow(2, 1, 1, "b")])
        with self.assertRaises(NoStartNodeError):
            find_start(graph)

    def test_no_end(self):
        graph = build_graph([TaskRow(1, 2, 1, "a"), TaskRow(2, 3, 1, "b"), TaskRow(3, 2, 1, "c")])
        self.assertEqual(find_start(graph), 1)
        with self.assertRaises(NoEndNodeError):
            find_end(graph)

    def test_validation_does_not_mutate(self):
        graph = build_graph(SAMPLE_ROWS)
        find_start(graph)
        find_end(graph)
        self.assertEqual(graph.number_of_edges(), 5)

    def test_cycle_is_reported(self):
        graph = build_graph([
            TaskRow(1, 2, 1, "a"),
            TaskRow(2, 3, 1, "b"),
            TaskRow(3, 2, 1, "c"),
            TaskRow(3, 4, 1, "d"),
        ])
        with self.assertRaises(CyclicNetworkError) as ctx:
            ensure_acyclic(graph)
        self.assertEqual(set(ctx.exception.cycle), {2, 3})

    def test_acyclic_passes(self):
        ensure_acyclic(build_graph(SAMPLE_ROWS))


class TestPertScheduler(unittest.TestCase):
    def test_linear_chain(self):
        network = PertScheduler().schedule([TaskRow(1, 2, 1, "t1"), TaskRow(2, 3, 3, "t2")])
        self.assertEqual(network.project_duration, 4)
        self.assertEqual(network.event(3).fastest_begin, 4)
        self.assertEqual(network.event(3).latest_finish, 4)
        self.assertEqual(network.event(1).fastest_begin, 0)
        self.assertEqual(network.task("t1").total_float, 0)
        self.assertTrue(network.is_critical_path(network.task("t1")))

    def test_diamond(self):
        network = PertScheduler().schedule(DIAMOND_ROWS)
        self.assertEqual(network.project_duration, 8)

        times = {e.label: (e.fastest_begin, e.latest_finish) for e in network.events()}
        self.assertEqual(times, {1: (0, 0), 2: (1, 3), 3: (5, 5), 4: (8, 8)})

        floats = {t.name: (t.total_float, t.free_float) for _, _, t in network.tasks()}
        self.assertEqual(floats, {"a": (2, 0), "b": (0, 0), "c": (2, 2), "d": (0, 0)})
        self.assertEqual(network.critical_paths(), [[1, 3, 4]])

    def test_sample_network(self):
        network = PertScheduler().schedule(SAMPLE_ROWS)
        self.assertEqual(network.project_duration, 10)

        times = {e.label: (e.fastest_begin, e.latest_finish) for e in network.events()}
        self.assertEqual(times, {1: (0, 0), 2: (1, 5), 3: (5, 8), 4: (10, 10)})

        floats = {t.name: (t.total_float, t.free_float) for _, _, t in network.tasks()}
        self.assertEqual(floats, {
            "task1": (4, 0),
            "task2": (4, 1),
            "task3": (3, 0),
            "task4": (0, 0),
            "task5": (3, 3),
        })
        self.assertEqual([t.name for t in network.critical_tasks()], ["task4"])

    def test_dummy_task_on_critical_path(self):
        network = PertScheduler().schedule([
            TaskRow(1, 2, 2, "a"),
            TaskRow(2, 3, 0, "dummy"),
            TaskRow(3, 4, 1, "b"),
            TaskRow(1, 3, 1, "c"),
        ])
        dummy = network.task("dummy")
        self.assertTrue(network.is_dummy_path(dummy))
        self.assertTrue(network.is_critical_path(dummy))
        self.assertEqual(network.task("c").total_float, 1)
        self.assertFalse(network.is_dummy_path(network.task("a")))

    def test_parallel_tasks_use_the_longer_one(self):
        rows = [TaskRow(1, 2, 3, "x"), TaskRow(1, 2, 5, "y"), TaskRow(2, 3, 1, "z")]
        for strategy in ("relaxation", "paths"):
            with self.subTest(strategy=strategy):
                network = PertScheduler(strategy=strategy).schedule(rows)
                self.assertEqual(network.project_duration, 6)
                self.assertEqual(network.task("x").total_float, 2)
                self.assertEqual(network.task("x").free_float, 2)
                self.assertEqual(network.task("y").total_float, 0)

    def test_project_start_offsets_times(self):
        network = PertScheduler(project_start=10).schedule(DIAMOND_ROWS)
        self.assertEqual(network.event(1).fastest_begin, 10)
        self.assertEqual(network.project_duration, 8)
        self.assertEqual(network.project_finish, 18)
        self.assertEqual(network.task("a").total_float, 2)

    def test_duplicate_start_rejected(self):
        with self.assertRaises(DuplicateStartNodeError):
            PertScheduler().schedule([TaskRow(1, 3, 1, "a"), TaskRow(2, 3, 1, "b")])

    def test_duplicate_end_rejected(self):
        with self.assertRaises(DuplicateEndNodeError):
            PertScheduler().schedule([TaskRow(1, 2, 1, "a"), TaskRow(1, 3, 1, "b")])

    def test_cyclic_network_rejected(self):
        with self.assertRaises(CyclicNetworkError):
            PertScheduler().schedule([
                TaskRow(1, 2, 1, "a"),
                TaskRow(2, 3, 1, "b"),
                TaskRow(3, 2, 1, "c"),
                TaskRow(3, 4, 1, "d"),
            ])

    def test_empty_input_has_no_start(self):
        with self.assertRaises(NoStartNodeError):
            PertScheduler().schedule([])

    def test_calculate_reports_failure(self):
        scheduler = PertScheduler()
        ok, message = scheduler.calculate([TaskRow(1, 3, 1, "a"), TaskRow(2, 3, 1, "b")])
        self.assertFalse(ok)
        self.assertIn("duplicated", message)
        self.assertIsNone(scheduler.network)
        self.assertTrue(scheduler.calculation_log[-1].startswith("ERROR"))

    def test_calculate_success_keeps_network_and_log(self):
        scheduler = PertScheduler()
        ok, _ = scheduler.calculate(SAMPLE_ROWS)
        self.assertTrue(ok)
        self.assertEqual(scheduler.network.project_duration, 10)
        self.assertIn("CALCULATION COMPLETE", scheduler.calculation_log)

    def test_rescheduling_starts_from_fresh_results(self):
        scheduler = PertScheduler()
        first = scheduler.schedule(SAMPLE_ROWS)
        second = scheduler.schedule([TaskRow(1, 2, 1, "task1"), TaskRow(2, 4, 1, "task2")])
        self.assertEqual(second.project_duration, 2)
        self.assertEqual(second.event(4).fastest_begin, 2)
        self.assertEqual(second.task("task1").total_float, 0)
        self.assertEqual(first.project_duration, 10)
        self.assertEqual(first.task("task1").total_float, 4)
        self.assertIsNot(first.event(1), second.event(1))

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            PertScheduler(strategy="magic")

    def test_errors_share_base_class(self):
        self.assertTrue(issubclass(CyclicNetworkError, PertError))


class TestSchedulePropagator(unittest.TestCase):
    def setUp(self):
        self.network = PertScheduler().schedule(DIAMOND_ROWS)
        self.graph = self.network.graph

    def test_fastest_begin_per_node(self):
        for strategy in ("relaxation", "paths"):
            with self.subTest(strategy=strategy):
                self.assertEqual(fastest_begin(self.graph, 1, 1, strategy), 0)
                self.assertEqual(fastest_begin(self.graph, 1, 3, strategy), 5)
                self.assertEqual(fastest_begin(self.graph, 1, 4, strategy), 8)

    def test_latest_finish_per_node(self):
        for strategy in ("relaxation", "paths"):
            with self.subTest(strategy=strategy):
                self.assertEqual(latest_finish(self.graph, 4, 4, strategy), 8)
                self.assertEqual(latest_finish(self.graph, 2, 4, strategy), 3)
                self.assertEqual(latest_finish(self.graph, 1, 4, strategy), 0)

    def test_unreachable_node_defaults(self):
        graph = self.graph.copy()
        graph.add_node(99, event=Event(99))
        self.assertEqual(fastest_begin(graph, 1, 99), 0)
        self.assertEqual(latest_finish(graph, 99, 4), 8)


class TestScheduleProperties(unittest.TestCase):
    def test_random_networks(self):
        rng = random.Random(1234)
        for trial in range(25):
            rows = random_dag_rows(rng, rng.randint(2, 8))
            with self.subTest(trial=trial):
                fast = PertScheduler().schedule(rows)
                slow = PertScheduler(strategy="paths").schedule(rows)

                self.assertEqual(
                    [(e.fastest_begin, e.latest_finish) for e in fast.events()],
                    [(e.fastest_begin, e.latest_finish) for e in slow.events()],
                )
                self.assertEqual(
                    [(t.total_float, t.free_float) for _, _, t in fast.tasks()],
                    [(t.total_float, t.free_float) for _, _, t in slow.tasks()],
                )

                start, end = fast.start, fast.end
                self.assertEqual(fast.event(start).fastest_begin, 0)
                self.assertEqual(fast.event(end).fastest_begin, fast.event(end).latest_finish)

                paths = list(nx.all_simple_edge_paths(fast.graph, start, end))
                lengths = [sum(fast.graph.edges[e]["task"].duration for e in p) for p in paths]
                longest = max(lengths)
                self.assertEqual(fast.project_duration, longest)
                on_longest = {e for p, n in zip(paths, lengths) if n == longest for e in p}

                for u, v, key, task in fast.graph.edges(keys=True, data="task"):
                    self.assertGreaterEqual(task.free_float, 0)
                    self.assertLessEqual(task.free_float, task.total_float)
                    self.assertEqual(task.is_critical_path(), (u, v, key) in on_longest)
                    self.assertEqual(task.is_dummy_path(), task.duration == 0)


if __name__ == "__main__":
    unittest.main()
