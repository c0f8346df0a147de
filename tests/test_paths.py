import unittest
from datetime import datetime, timezone

from analytics.errors import NotFound
from analytics.models import Event
from analytics.paths import (
    HIERARCHY,
    PRECEDENCE,
    PrecedenceGraph,
    breadth_first_path,
    shortest_hierarchy_path,
    shortest_precedence_path,
)
from analytics.snapshot import EventSnapshot


def at(hour, minute=0):
    return datetime(2024, 7, 1, hour, minute, tzinfo=timezone.utc)


def precedence_snapshot():
    return EventSnapshot([
        Event("E1", "Collect", at(9), at(10)),
        Event("E2", "Triage", at(10), at(11)),
        Event("E3", "Report", at(11, 30), at(12)),
        Event("E4", "Standup", at(9), at(9, 30)),
    ])


class PrecedenceGraphTest(unittest.TestCase):
    def setUp(self):
        self.graph = PrecedenceGraph(precedence_snapshot().get_all_events())

    def test_touching_events_are_connected(self):
        self.assertTrue(self.graph.has_edge("E1", "E2"))
        self.assertFalse(self.graph.has_edge("E2", "E1"))
        self.assertFalse(self.graph.has_edge("E1", "E1"))

    def test_successors_follow_snapshot_order(self):
        self.assertEqual([e.id for e in self.graph.successors("E1")], ["E2", "E3"])
        self.assertEqual(self.graph.successors("E3"), [])

    def test_edge_count_matches_adjacency(self):
        adjacency = self.graph.adjacency()
        self.assertEqual(self.graph.edge_count(), sum(len(v) for v in adjacency.values()))
        self.assertEqual(self.graph.edge_count(), 5)


class ShortestPrecedencePathTest(unittest.TestCase):
    def setUp(self):
        self.snapshot = precedence_snapshot()

    def test_direct_edge_preferred(self):
        result = shortest_precedence_path(self.snapshot, "E1", "E3")
        self.assertEqual(result.kind, PRECEDENCE)
        self.assertEqual(result.event_ids, ["E1", "E3"])
        self.assertEqual([s.duration_minutes for s in result.steps], [60, 30])
        self.assertEqual(result.total_duration_minutes, 90)

    def test_no_path_is_empty(self):
        result = shortest_precedence_path(self.snapshot, "E3", "E1")
        self.assertFalse(result.found)
        self.assertEqual(result.to_dict()["shortest_path"], [])
        self.assertEqual(result.total_duration_minutes, 0)

    def test_source_equals_target(self):
        result = shortest_precedence_path(self.snapshot, "E2", "E2")
        self.assertEqual(result.event_ids, ["E2"])

    def test_unknown_ids(self):
        with self.assertRaises(NotFound) as ctx:
            shortest_precedence_path(self.snapshot, "nope", "E1")
        self.assertIn("Source event", str(ctx.exception))
        with self.assertRaises(NotFound):
            shortest_precedence_path(self.snapshot, "E1", "nope")

    def test_reuses_prebuilt_graph(self):
        graph = PrecedenceGraph(self.snapshot.get_all_events())
        first = shortest_precedence_path(self.snapshot, "E4", "E3", graph=graph)
        second = shortest_precedence_path(self.snapshot, "E1", "E2", graph=graph)
        self.assertEqual(first.event_ids, ["E4", "E3"])
        self.assertEqual(second.event_ids, ["E1", "E2"])


class BreadthFirstPathTest(unittest.TestCase):
    def test_ties_follow_neighbour_order(self):
        edges = {"s": ["a", "b"], "a": ["t"], "b": ["t"], "t": []}
        self.assertEqual(breadth_first_path("s", "t", edges.__getitem__), ["s", "a", "t"])
        edges["s"] = ["b", "a"]
        self.assertEqual(breadth_first_path("s", "t", edges.__getitem__), ["s", "b", "t"])

    def test_cycle_terminates(self):
        edges = {"a": ["b"], "b": ["a"], "c": []}
        self.assertEqual(breadth_first_path("a", "c", edges.__getitem__), [])


class ShortestHierarchyPathTest(unittest.TestCase):
    def setUp(self):
        self.snapshot = EventSnapshot([
            Event("R", "Program", at(8), at(18)),
            Event("A", "Phase A", at(9), at(11), parent_id="R"),
            Event("A1", "Task A1", at(9), at(10), parent_id="A"),
            Event("B", "Phase B", at(12), at(13), parent_id="R"),
        ])

    def test_walks_up_then_down(self):
        result = shortest_hierarchy_path(self.snapshot, "A1", "B")
        self.assertEqual(result.kind, HIERARCHY)
        self.assertEqual(result.event_ids, ["A1", "A", "R", "B"])
        self.assertEqual(result.total_duration_minutes, 60 + 120 + 600 + 60)

    def test_unreachable(self):
        snapshot = EventSnapshot(list(self.snapshot) + [Event("X", "Orphan", at(20), at(21))])
        self.assertFalse(shortest_hierarchy_path(snapshot, "X", "R").found)

    def test_missing_parent_is_ignored(self):
        snapshot = EventSnapshot([
            Event("P", "Parent", at(9), at(10), parent_id="gone"),
            Event("C", "Child", at(9), at(9, 30), parent_id="P"),
        ])
        self.assertEqual(shortest_hierarchy_path(snapshot, "C", "P").event_ids, ["C", "P"])


if __name__ == "__main__":
    unittest.main()
