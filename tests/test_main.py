import unittest

from main import cli_limitations, parse_args
from models import FirefoxOptions


class TestCommandLine(unittest.TestCase):
    def test_init_scripts_are_repeatable(self):
        args = parse_args(["--url", "https://x/a", "--init-script", "har.js", "--init-script", "extra.js"])
        self.assertEqual(args.init_script, ["har.js", "extra.js"])
        self.assertEqual(parse_args(["--url", "https://x/a"]).init_script, [])

    def test_har_without_init_script_is_reported(self):
        warnings = cli_limitations(FirefoxOptions(), [])
        self.assertEqual(len(warnings), 1)
        self.assertIn("HAR.triggerExport", warnings[0])
        self.assertEqual(cli_limitations(FirefoxOptions(), ["har.js"]), [])

    def test_profiler_is_reported(self):
        warnings = cli_limitations(FirefoxOptions(skip_har=True, gecko_profiler=True))
        self.assertEqual(len(warnings), 1)
        self.assertIn("Services.profiler", warnings[0])


if __name__ == "__main__":
    unittest.main()
