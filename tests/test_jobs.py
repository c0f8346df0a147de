import tempfile
import unittest
from pathlib import Path
from unittest import mock

from api.services.jobs import JobRegistry, JobStatus
from cli.ingest import IngestResult
from cli.store import SqliteEventStore


class JobRegistryTest(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.store = SqliteEventStore(self.dir / "events.sqlite")
        self.store.init()
        self.jobs = JobRegistry()

    def tearDown(self):
        self._tmp.cleanup()

    def test_unexpected_error_fails_job(self):
        path = self.dir / "events.txt"
        path.write_text("", encoding="utf-8")
        job = self.jobs.create(path.name)
        with mock.patch("api.services.jobs.ingest_file", side_effect=RuntimeError("boom")):
            self.jobs.run_ingestion(job.job_id, self.store, path)
        status = self.jobs.status(job.job_id)
        self.assertEqual(status["status"], "failed")
        self.assertIn("boom", status["error"])
        self.assertIsNotNone(status["finished_at"])

    def test_non_object_ndjson_line_completes_job(self):
        path = self.dir / "events.ndjson"
        path.write_text(
            '{"id": "a", "name": "A", "start": "2024-07-01T09:00:00Z", "end": "2024-07-01T10:00:00Z"}\n5\n',
            encoding="utf-8",
        )
        job = self.jobs.create(path.name)
        self.jobs.run_ingestion(job.job_id, self.store, path)
        status = self.jobs.status(job.job_id)
        self.assertEqual(status["status"], "completed")
        self.assertEqual((status["events_ingested"], status["events_skipped"]), (1, 1))
        self.assertEqual(status["errors"][0]["line"], 2)

    def test_missing_file_fails_job(self):
        job = self.jobs.create("gone.csv")
        self.jobs.run_ingestion(job.job_id, self.store, self.dir / "gone.csv")
        self.assertEqual(self.jobs.get(job.job_id).status, JobStatus.FAILED)

    def test_status_is_a_snapshot(self):
        job = self.jobs.create("events.txt")
        seen = []

        def fake_ingest(store, path, progress_callback=None):
            partial = IngestResult(source=path.name, total_lines=500, events_skipped=2)
            progress_callback(partial)
            seen.append(self.jobs.status(job.job_id))
            return IngestResult(source=path.name, events_ingested=498, events_skipped=2, total_lines=500)

        with mock.patch("api.services.jobs.ingest_file", side_effect=fake_ingest):
            self.jobs.run_ingestion(job.job_id, self.store, self.dir / "events.txt")

        self.assertEqual(seen[0]["status"], "processing")
        self.assertEqual((seen[0]["total_lines"], seen[0]["events_skipped"]), (500, 2))
        final = self.jobs.status(job.job_id)
        self.assertEqual(final["events_ingested"], 498)
        self.assertEqual(seen[0]["events_ingested"], 0)
        self.assertIsNone(self.jobs.status("unknown"))

    def test_finished_jobs_are_evicted(self):
        jobs = JobRegistry(max_finished=1)
        first, second = jobs.create("a"), jobs.create("b")
        for job in (first, second):
            with mock.patch("api.services.jobs.ingest_file", return_value=IngestResult(source="x")):
                jobs.run_ingestion(job.job_id, self.store, self.dir / "x")
        self.assertIsNone(jobs.get(first.job_id))
        self.assertIsNotNone(jobs.get(second.job_id))


if __name__ == "__main__":
    unittest.main()
