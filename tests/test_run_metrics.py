import json
import tempfile
import unittest
from pathlib import Path

from run_metrics import CollectionMetrics


class TestCollectionMetrics(unittest.TestCase):
    def test_counters_and_events(self):
        metrics = CollectionMetrics()
        metrics.inc("har_captured")
        metrics.inc("har_captured")
        metrics.inc("")
        metrics.record_event("transfer", step="profiler_transfer", message=None)
        metrics.finish()

        payload = metrics.to_dict()
        self.assertEqual(payload["counters"], {"har_captured": 2})
        self.assertEqual(payload["events"][0]["kind"], "transfer")
        self.assertNotIn("message", payload["events"][0])
        self.assertGreaterEqual(payload["duration_seconds"], 0)

    def test_write_json(self):
        metrics = CollectionMetrics()
        metrics.inc("profiles_collected")
        with tempfile.TemporaryDirectory() as tmp:
            path = metrics.write_json(Path(tmp) / "out" / "metrics.json")
            data = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(data["counters"]["profiles_collected"], 1)
        self.assertEqual(data["browser"], "firefox")


if __name__ == "__main__":
    unittest.main()
