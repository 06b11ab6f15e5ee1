import unittest
from unittest.mock import AsyncMock

from alias_resolver import AliasUrlResolver
from har_collector import GET_HAR_SCRIPT, HarCollector
from har_fixtures import export_result
from models import ErrorKind, FirefoxOptions, IterationResult


def _collector(**kwargs):
    return HarCollector(FirefoxOptions(**kwargs), AliasUrlResolver())


class TestCaptureIteration(unittest.IsolatedAsyncioTestCase):
    async def test_appends_normalized_har(self):
        runner = AsyncMock()
        runner.run_async_script.return_value = export_result(url="https://x/a", wrapped=False)
        collector = _collector(include_response_bodies="all")

        result = await collector.capture_iteration(runner, IterationResult(url="https://x/a", index=1))

        self.assertTrue(result.ok)
        runner.run_async_script.assert_awaited_once_with(GET_HAR_SCRIPT, "GET_HAR_SCRIPT")
        self.assertEqual(len(collector), 1)
        har = collector.hars[0]
        self.assertIn("log", har)
        self.assertEqual(har["log"]["pages"][0]["_url"], "https://x/a")
        self.assertEqual(har["log"]["entries"][1]["response"]["content"]["text"], "body-1")

    async def test_applies_body_policy(self):
        runner = AsyncMock()
        runner.run_async_script.return_value = export_result()
        collector = _collector(include_response_bodies="html")

        await collector.capture_iteration(runner, IterationResult(url="https://example.com/"))

        contents = [e["response"]["content"] for e in collector.hars[0]["log"]["entries"]]
        self.assertEqual(["text" in c for c in contents], [True, False, False])

    async def test_error_payload_appends_nothing(self):
        runner = AsyncMock()
        runner.run_async_script.return_value = {"error": "boom"}
        collector = _collector()

        result = await collector.capture_iteration(runner, IterationResult(url="https://x/a"))

        self.assertEqual(result.error.kind, ErrorKind.COLLECTION)
        self.assertEqual(len(collector), 0)

    async def test_channel_rejection_appends_nothing(self):
        runner = AsyncMock()
        runner.run_async_script.side_effect = RuntimeError("session gone")
        collector = _collector()

        result = await collector.capture_iteration(runner, IterationResult(url="https://x/a"))

        self.assertFalse(result.ok)
        self.assertEqual(len(collector), 0)

    async def test_har_without_pages_is_kept(self):
        runner = AsyncMock()
        payload = export_result()
        payload["har"]["log"]["pages"] = []
        runner.run_async_script.return_value = payload
        collector = _collector()

        result = await collector.capture_iteration(runner, IterationResult(url="https://x/a", alias="spa"))

        self.assertTrue(result.ok)
        self.assertEqual(len(collector), 1)
        self.assertEqual(len(collector.resolver), 0)

    async def test_skip_har_is_noop(self):
        runner = AsyncMock()
        collector = _collector(skip_har=True)

        result = await collector.capture_iteration(runner, IterationResult(url="https://x/a"))
        collector.record_failure("https://x/a")

        self.assertTrue(result.skipped)
        runner.run_async_script.assert_not_awaited()
        self.assertEqual(collector.merge_all(), {})


class TestMergeAll(unittest.IsolatedAsyncioTestCase):
    async def test_nothing_collected(self):
        self.assertEqual(_collector().merge_all(), {})

    async def test_failure_placeholder(self):
        collector = _collector()
        collector.record_failure("https://x/broken")

        merged = collector.merge_all()

        pages = merged["log"]["pages"]
        self.assertEqual(len(pages), 1)
        self.assertEqual(pages[0]["_url"], "https://x/broken")

    async def test_order_follows_calls(self):
        runner = AsyncMock()
        runner.run_async_script.side_effect = [
            export_result(url="https://x/1"),
            export_result(url="https://x/3"),
        ]
        collector = _collector()

        await collector.capture_iteration(runner, IterationResult(url="https://x/1", index=1))
        collector.record_failure("https://x/2")
        await collector.capture_iteration(runner, IterationResult(url="https://x/3", index=3))

        pages = collector.merge_all()["log"]["pages"]
        self.assertEqual([p["_url"] for p in pages], ["https://x/1", "https://x/2", "https://x/3"])

    async def test_reset_clears_captures(self):
        collector = _collector()
        collector.record_failure("https://x/a")
        collector.reset()
        self.assertEqual(collector.merge_all(), {})


if __name__ == "__main__":
    unittest.main()
