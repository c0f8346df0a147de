import unittest
from datetime import datetime, timezone

from analytics.config import AnalyticsSettings
from analytics.errors import InvalidInterval, InvalidRange, NotFound
from analytics.gaps import find_gaps, largest_gap, simulate_gap, window_neighbours
from analytics.models import Event, Severity
from analytics.service import TimelineAnalytics
from analytics.snapshot import EventSnapshot


def at(hour, minute=0):
    return datetime(2024, 7, 1, hour, minute, tzinfo=timezone.utc)


def build_snapshot():
    return EventSnapshot([
        Event("a", "Kickoff", at(9), at(10)),
        Event("b", "Design", at(10, 30), at(11)),
        Event("c", "Build", at(13), at(14)),
        Event("d", "Review", at(13, 30), at(15)),
        Event("e", "Release", at(23), at(23, 30)),
    ])


class FindGapsTest(unittest.TestCase):
    def setUp(self):
        self.snapshot = build_snapshot()

    def test_global_gaps_largest_first(self):
        gaps = find_gaps(self.snapshot)
        self.assertEqual([g.key for g in gaps], [("d", "e"), ("b", "c"), ("a", "b")])
        self.assertEqual([g.duration_minutes for g in gaps], [480, 120, 30])
        self.assertEqual([g.severity for g in gaps], [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM])

    def test_overlapping_neighbours_are_not_gaps(self):
        keys = [g.key for g in find_gaps(self.snapshot)]
        self.assertNotIn(("c", "d"), keys)

    def test_only_adjacent_pairs_reported(self):
        keys = {g.key for g in find_gaps(self.snapshot)}
        self.assertNotIn(("a", "c"), keys)
        self.assertNotIn(("b", "e"), keys)

    def test_idempotent(self):
        self.assertEqual(find_gaps(self.snapshot), find_gaps(self.snapshot))

    def test_min_gap_filter(self):
        gaps = find_gaps(self.snapshot, min_gap_minutes=120)
        self.assertEqual([g.key for g in gaps], [("d", "e"), ("b", "c")])

    def test_window_includes_nearest_outside_events(self):
        gaps = find_gaps(self.snapshot, at(10, 15), at(13, 15))
        self.assertEqual([g.key for g in gaps], [("b", "c"), ("a", "b")])

    def test_window_without_events_has_no_gaps(self):
        self.assertEqual(find_gaps(self.snapshot, at(15, 30), at(16)), [])

    def test_window_neighbours(self):
        before, inside, after = window_neighbours(self.snapshot.get_all_events(), at(11, 30), at(12))
        self.assertEqual(before.id, "b")
        self.assertEqual(inside, [])
        self.assertEqual(after.id, "c")

    def test_requires_both_bounds(self):
        with self.assertRaises(InvalidRange):
            find_gaps(self.snapshot, at(9), None)
        with self.assertRaises(InvalidRange):
            find_gaps(self.snapshot, at(12), at(11))

    def test_equal_durations_break_ties_by_preceding_start(self):
        snapshot = EventSnapshot([
            Event("z", "Z", at(12), at(12, 10)),
            Event("x", "X", at(10), at(10, 10)),
            Event("y", "Y", at(11), at(11, 10)),
        ])
        gaps = find_gaps(snapshot)
        self.assertEqual([g.key for g in gaps], [("x", "y"), ("y", "z")])

    def test_fewer_than_two_events(self):
        self.assertEqual(find_gaps(EventSnapshot([])), [])
        self.assertIsNone(largest_gap(EventSnapshot([Event("a", "A", at(9), at(10))])))

    def test_gap_dict(self):
        gap = largest_gap(self.snapshot)
        data = gap.to_dict()
        self.assertEqual(data["start_of_gap"], "2024-07-01T15:00:00Z")
        self.assertEqual(data["preceding_event"]["event_id"], "d")
        self.assertEqual(data["succeeding_event"]["event_id"], "e")
        self.assertEqual(data["severity"], "critical")


class SimulateGapTest(unittest.TestCase):
    def setUp(self):
        self.snapshot = build_snapshot()

    def test_eliminated(self):
        simulation = simulate_gap(self.snapshot, "b", at(10), at(11))
        self.assertEqual(simulation.original_gap_count, 3)
        self.assertEqual(simulation.new_gap_count, 2)
        self.assertEqual([a.change for a in simulation.affected_gaps], ["eliminated"])
        self.assertEqual(simulation.affected_gaps[0].original.key, ("a", "b"))

    def test_modified(self):
        simulation = simulate_gap(self.snapshot, "b", at(10, 45), at(12))
        changes = {a.original.key: (a.change, a.change_minutes) for a in simulation.affected_gaps}
        self.assertEqual(changes, {("a", "b"): ("modified", 15), ("b", "c"): ("modified", -60)})

    def test_created(self):
        simulation = simulate_gap(self.snapshot, "a", at(15, 30), at(16))
        kinds = sorted(a.change for a in simulation.affected_gaps)
        self.assertEqual(kinds, ["created", "created", "eliminated"])
        created = {a.new.key for a in simulation.affected_gaps if a.change == "created"}
        self.assertEqual(created, {("d", "a"), ("a", "e")})

    def test_snapshot_unchanged(self):
        before = find_gaps(self.snapshot)
        simulate_gap(self.snapshot, "b", at(10), at(11))
        self.assertEqual(find_gaps(self.snapshot), before)

    def test_errors(self):
        with self.assertRaises(NotFound):
            simulate_gap(self.snapshot, "missing", at(9), at(10))
        with self.assertRaises(InvalidInterval):
            simulate_gap(self.snapshot, "b", at(11), at(10))


class GapServiceTest(unittest.TestCase):
    def setUp(self):
        self.analytics = TimelineAnalytics(build_snapshot(), AnalyticsSettings())

    def test_severity_filter_and_limit(self):
        self.assertEqual([g.key for g in self.analytics.find_critical_gaps()], [("d", "e")])
        self.assertEqual(len(self.analytics.find_gaps(limit=2)), 2)
        self.assertEqual(self.analytics.find_gaps(severity=Severity.LOW), [])

    def test_windows_fan_out_in_order(self):
        results = self.analytics.find_gaps_in_windows([(at(10, 15), at(13, 15)), (at(15, 30), at(16))])
        self.assertEqual([[g.key for g in r] for r in results], [[("b", "c"), ("a", "b")], []])

    def test_analysis(self):
        analysis = self.analytics.analyze_gaps()
        self.assertEqual(analysis.statistics.total_gaps, 3)
        self.assertEqual(analysis.statistics.total_gap_minutes, 630)
        self.assertEqual(analysis.statistics.max_gap_minutes, 480)
        self.assertEqual(analysis.events_with_most_gaps[0][1], 2)
        self.assertEqual([r.type for r in analysis.recommendations], ["critical"])


if __name__ == "__main__":
    unittest.main()
