import unittest
from unittest.mock import AsyncMock, MagicMock

from script_runner import PlaywrightScriptRunner, wrap_async_script, wrap_sync_script


class TestScriptRunner(unittest.IsolatedAsyncioTestCase):
    def test_wrappers(self):
        self.assertEqual(wrap_sync_script("return 1;"), "(function() {\nreturn 1;\n}).apply(null, [])")
        wrapped = wrap_async_script("arguments[arguments.length - 1](2);")
        self.assertTrue(wrapped.startswith("new Promise((resolve) => {"))
        self.assertIn(".apply(null, [resolve]);", wrapped)

    async def test_privileged_scripts_use_privileged_page(self):
        page = MagicMock()
        page.evaluate = AsyncMock(return_value="page")
        privileged = MagicMock()
        privileged.evaluate = AsyncMock(return_value=7)
        runner = PlaywrightScriptRunner(page, privileged_page=privileged)

        self.assertEqual(await runner.run_privileged_script("return 7;", "length"), 7)
        self.assertEqual(await runner.run_async_script("x", "har"), "page")
        privileged.evaluate.assert_awaited_once_with(wrap_sync_script("return 7;"))
        page.evaluate.assert_awaited_once_with(wrap_async_script("x"))

    async def test_errors_propagate(self):
        page = MagicMock()
        page.evaluate = AsyncMock(side_effect=RuntimeError("ReferenceError: HAR is not defined"))
        runner = PlaywrightScriptRunner(page)
        with self.assertRaises(RuntimeError):
            await runner.run_async_script("HAR.triggerExport()", "har")


if __name__ == "__main__":
    unittest.main()
