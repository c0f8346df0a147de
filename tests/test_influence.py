import unittest
from datetime import datetime, timezone

from analytics.config import AnalyticsSettings
from analytics.deadline import Deadline
from analytics.errors import AnalysisTimeout, NotFound
from analytics.influence import (
    compute_influence,
    global_influence_analysis,
    influence_network,
    simulate_influence,
)
from analytics.models import Event
from analytics.service import TimelineAnalytics
from analytics.snapshot import EventSnapshot


def at(hour, minute=0):
    return datetime(2024, 7, 1, hour, minute, tzinfo=timezone.utc)


def chain_snapshot():
    return EventSnapshot([
        Event("S", "Source", at(9), at(12)),
        Event("C1", "Child", at(9, 30), at(10, 30), parent_id="S"),
        Event("C2", "Grandchild", at(10), at(10, 15), parent_id="C1"),
    ])


def expired_deadline():
    now = [0.0]
    deadline = Deadline(1.0, clock=lambda: now[0])
    now[0] = 2.0
    return deadline


class ComputeInfluenceTest(unittest.TestCase):
    def test_decay_per_level(self):
        result = compute_influence(chain_snapshot(), "S", max_depth=2, decay_factor=0.7)
        scores = {r.event.id: r.score for r in result.records}
        self.assertAlmostEqual(scores["S"], 1.0)
        self.assertAlmostEqual(scores["C1"], 0.7)
        self.assertAlmostEqual(scores["C2"], 0.49)
        self.assertAlmostEqual(result.total_influence, 2.19)
        self.assertEqual([r.depth for r in result.records], [0, 1, 2])

    def test_depth_bound(self):
        result = compute_influence(chain_snapshot(), "S", max_depth=1)
        self.assertEqual([r.event.id for r in result.records], ["S", "C1"])
        self.assertEqual([r.event.id for r in compute_influence(chain_snapshot(), "S", 0).records], ["S"])

    def test_walks_up_to_parents(self):
        result = compute_influence(chain_snapshot(), "C2", max_depth=3)
        scores = {r.event.id: r.score for r in result.records}
        self.assertAlmostEqual(scores["C1"], 0.7)
        self.assertAlmostEqual(scores["S"], 0.49)

    def test_keeps_best_score_per_event(self):
        snapshot = EventSnapshot([
            Event("P", "Parent", at(9), at(12)),
            Event("A", "A", at(9), at(10), parent_id="P"),
            Event("B", "B", at(10), at(11), parent_id="P"),
        ])
        result = compute_influence(snapshot, "A", max_depth=3)
        self.assertEqual(len(result.records), 3)
        scores = {r.event.id: r.score for r in result.records}
        self.assertAlmostEqual(scores["B"], 0.49)

    def test_cycle_terminates_without_double_counting(self):
        snapshot = EventSnapshot([
            Event("X", "X", at(9), at(10), parent_id="Y"),
            Event("Y", "Y", at(10), at(11), parent_id="X"),
        ])
        result = compute_influence(snapshot, "X", max_depth=10)
        self.assertEqual(sorted(r.event.id for r in result.records), ["X", "Y"])
        self.assertAlmostEqual(result.total_influence, 1.7)

    def test_self_parent(self):
        snapshot = EventSnapshot([Event("Z", "Z", at(9), at(10), parent_id="Z")])
        result = compute_influence(snapshot, "Z", max_depth=5)
        self.assertEqual([r.event.id for r in result.records], ["Z"])

    def test_errors(self):
        with self.assertRaises(NotFound):
            compute_influence(chain_snapshot(), "nope")
        with self.assertRaises(ValueError):
            compute_influence(chain_snapshot(), "S", max_depth=-1)
        with self.assertRaises(ValueError):
            compute_influence(chain_snapshot(), "S", decay_factor=0)
        with self.assertRaises(AnalysisTimeout):
            compute_influence(chain_snapshot(), "S", deadline=expired_deadline())


class GlobalInfluenceTest(unittest.TestCase):
    def test_totals_and_ranking(self):
        analysis = global_influence_analysis(chain_snapshot(), AnalyticsSettings(max_workers=2))
        self.assertEqual([e.id for e, _ in analysis.totals], ["S", "C1", "C2"])
        self.assertEqual(analysis.top_influencers[0][0].id, "C1")
        self.assertAlmostEqual(analysis.top_influencers[0][1], 2.4)
        self.assertEqual(analysis.distribution, {"high": 3, "medium": 0, "low": 0})
        self.assertAlmostEqual(analysis.variance, 0.0098)
        self.assertEqual(analysis.recommendations, [])

    def test_empty_snapshot(self):
        analysis = global_influence_analysis(EventSnapshot([]), AnalyticsSettings())
        data = analysis.to_dict()
        self.assertEqual(data["total_events"], 0)
        self.assertEqual(data["statistics"]["max_influence"], 0.0)

    def test_timeout_propagates(self):
        with self.assertRaises(AnalysisTimeout):
            global_influence_analysis(chain_snapshot(), AnalyticsSettings(), expired_deadline())


class NetworkTest(unittest.TestCase):
    def test_star_around_source(self):
        network = influence_network(compute_influence(chain_snapshot(), "S", 2))
        data = network.to_dict()
        self.assertEqual([n.group for n in network.nodes], ["source", "influenced", "influenced"])
        self.assertEqual([(e.source, e.target) for e in network.edges], [("S", "C1"), ("S", "C2")])
        self.assertEqual(data["metadata"]["total_edges"], 2)
        self.assertAlmostEqual(data["metadata"]["min_influence"], 0.49)


class SimulateInfluenceTest(unittest.TestCase):
    def test_detaching_reduces_influence(self):
        simulation = simulate_influence(chain_snapshot(), "C2", None, ["C1", "missing"], AnalyticsSettings())
        self.assertAlmostEqual(simulation.original_influence, 2.19)
        self.assertAlmostEqual(simulation.new_influence, 1.0)
        self.assertLess(simulation.influence_change_percentage, -20)
        self.assertEqual([r.type for r in simulation.recommendations], ["warning"])
        self.assertEqual([i.event_id for i in simulation.impact_analysis], ["C1"])
        self.assertAlmostEqual(simulation.impact_analysis[0].new_influence, 1.7)

    def test_unknown_parent(self):
        with self.assertRaises(NotFound):
            simulate_influence(chain_snapshot(), "C2", "nope", [], AnalyticsSettings())

    def test_service_uses_configured_depth(self):
        analytics = TimelineAnalytics(chain_snapshot(), AnalyticsSettings(influence_depth=1))
        result, pattern, _ = analytics.analyze_influence("S")
        self.assertEqual(len(result.records), 2)
        self.assertAlmostEqual(pattern.max_influence, 1.0)
        self.assertAlmostEqual(pattern.influence_range, 0.3)


if __name__ == "__main__":
    unittest.main()
