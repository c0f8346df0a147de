import csv
import json
import tempfile
import unittest
from pathlib import Path

from cli.ingest import ingest_file, iter_rows, normalize_row, prepare_event
from cli.store import SqliteEventStore


class IngestTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.store = SqliteEventStore(self.dir / "events.sqlite")
        self.store.init()

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, text):
        path = self.dir / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_pipe_file_skips_and_records_bad_lines(self):
        path = self.write(
            "events.txt",
            "\n".join([
                "p1|Parent|2024-07-01T09:00:00Z|2024-07-01T12:00:00Z|NULL|Top level",
                "c1|Child|2024-07-01T09:30:00Z|2024-07-01T10:00:00Z|p1|Uses | pipes",
                "bad|Short|2024-07-01T09:00:00Z",
                "inv|Inverted|2024-07-01T11:00:00Z|2024-07-01T10:00:00Z|NULL|",
                "nod|No date|yesterday|2024-07-01T10:00:00Z|NULL|",
            ]),
        )
        result = ingest_file(self.store, path)
        self.assertEqual(result.total_lines, 5)
        self.assertEqual(result.events_ingested, 2)
        self.assertEqual(result.events_skipped, 3)
        self.assertEqual([e["line"] for e in result.errors], [3, 4, 5])
        child = self.store.get_event("c1")
        self.assertEqual(child.parent_id, "p1")
        self.assertEqual(child.description, "Uses | pipes")
        self.assertEqual(child.metadata["source"], "events.txt")

    def test_csv_with_naive_timestamps_assumes_utc(self):
        path = self.write(
            "events.csv",
            "event_id,event_name,start_date,end_date,parent_id,description\n"
            "e1,Deploy,2024-07-01 09:00:00,2024-07-01 09:45:00,,first\n"
            "e2,,2024-07-01 10:00:00,2024-07-01 11:00:00,,missing name\n",
        )
        result = ingest_file(self.store, path)
        self.assertEqual(result.events_ingested, 1)
        self.assertEqual(result.errors[0]["line"], 3)
        self.assertIn("event_name", result.errors[0]["error"])
        self.assertEqual(self.store.get_event("e1").duration_minutes, 45)

    def test_ndjson_duplicates_and_bad_json(self):
        rows = [
            {"id": "n1", "name": "One", "start": "2024-07-01T09:00:00+02:00", "end": "2024-07-01T10:00:00+02:00"},
            {"id": "n1", "name": "Dup", "start": "2024-07-01T09:00:00Z", "end": "2024-07-01T10:00:00Z"},
        ]
        path = self.write("events.ndjson", "\n".join(json.dumps(r) for r in rows) + "\n{not json\n")
        result = ingest_file(self.store, path)
        self.assertEqual(result.events_ingested, 1)
        self.assertEqual(sorted(e["line"] for e in result.errors), [2, 3])

    def test_ndjson_non_object_lines_are_skipped(self):
        good = {"id": "ok", "name": "Ok", "start": "2024-07-01T09:00:00Z", "end": "2024-07-01T10:00:00Z"}
        late = {"id": "late", "name": "Late", "start": 5, "end": "2024-07-01T10:00:00Z"}
        lines = [json.dumps(good), "5", "[1, 2]", '"x"', json.dumps(late)]
        path = self.write("events.ndjson", "\n".join(lines) + "\n")
        result = ingest_file(self.store, path)
        self.assertEqual(result.total_lines, 5)
        self.assertEqual(result.events_ingested, 1)
        self.assertEqual([e["line"] for e in result.errors], [2, 3, 4, 5])
        self.assertIn("got int", result.errors[0]["error"])
        self.assertIn("got list", result.errors[1]["error"])
        self.assertIn("got str", result.errors[2]["error"])
        self.assertIn("Invalid date format", result.errors[3]["error"])
        self.assertIsNotNone(self.store.get_event("ok"))

    def test_csv_row_errors_do_not_abort_file(self):
        path = self.write(
            "events.csv",
            "event_id,event_name,start_date,end_date\n"
            "c1,First,2024-07-01T09:00:00Z,2024-07-01T10:00:00Z\n"
            f"c2,{'x' * (csv.field_size_limit() + 10)},2024-07-01T10:00:00Z,2024-07-01T11:00:00Z\n"
            "c3,Third,2024-07-01T11:00:00Z,2024-07-01T12:00:00Z\n",
        )
        result = ingest_file(self.store, path)
        self.assertEqual(result.events_ingested, 2)
        self.assertEqual(result.events_skipped, 1)
        self.assertEqual(result.errors[0]["line"], 3)
        self.assertIn("Invalid CSV row", result.errors[0]["error"])
        self.assertEqual([e.id for e in self.store.get_all_events()], ["c1", "c3"])

    def test_generates_missing_ids(self):
        event = prepare_event(
            {"event_name": "X", "start_date": "2024-07-01T09:00:00Z", "end_date": "2024-07-01T10:00:00Z"},
            "manual",
        )
        self.assertTrue(event.id)
        self.assertEqual(event.metadata, {"source": "manual"})

    def test_normalize_row_aliases(self):
        row = normalize_row({"Event Name": "X", "parentEventId": "null", "Start": "s"})
        self.assertEqual(row, {"event_name": "X", "parent_id": None, "start_date": "s"})

    def test_suffix_selects_parser(self):
        path = self.write("events.jsonl", '{"event_name": "A"}\n\n')
        self.assertEqual(list(iter_rows(path)), [(1, {"event_name": "A"})])


if __name__ == "__main__":
    unittest.main()
