import tempfile
import unittest
from pathlib import Path

from config_loader import ConfigLoader, ConfigValidationError


class TestConfigLoader(unittest.TestCase):
    def test_defaults(self):
        options = ConfigLoader(data={}).get_firefox_options()
        self.assertFalse(options.skip_har)
        self.assertEqual(options.include_response_bodies, "none")
        self.assertFalse(options.gecko_profiler)
        self.assertIsNone(options.gecko_profiler_params.interval)
        self.assertEqual(options.gecko_profiler_params.feature_list(), ["js", "stackwalk", "leaf"])
        self.assertFalse(options.android)

    def test_reads_yaml_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.yaml"
            path.write_text(
                "firefox:\n"
                "  include_response_bodies: html\n"
                "  gecko_profiler: true\n"
                "  gecko_profiler_params:\n"
                "    features: js,cpu\n"
                "    threads: GeckoMain\n"
                "    interval: 2\n"
                "android:\n"
                "  enabled: true\n"
                "  device_id: emulator-5554\n",
                encoding="utf-8",
            )
            config = ConfigLoader(str(path))

        options = config.get_firefox_options()
        self.assertEqual(options.include_response_bodies, "html")
        self.assertTrue(options.gecko_profiler)
        self.assertEqual(options.gecko_profiler_params.thread_list(), ["GeckoMain"])
        self.assertEqual(options.gecko_profiler_params.interval, 2.0)
        self.assertTrue(options.android)
        self.assertEqual(options.android_device_id, "emulator-5554")
        self.assertEqual(config.get_enabled_collectors(), ["har", "gecko_profiler"])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ConfigLoader("does/not/exist.yaml")

    def test_invalid_body_policy(self):
        with self.assertRaises(ConfigValidationError) as cm:
            ConfigLoader(data={"firefox": {"include_response_bodies": "some"}})
        self.assertIn("include_response_bodies", str(cm.exception))

    def test_invalid_profiler_params(self):
        bad = [
            {"interval": 0},
            {"buffer_size": -1},
            {"features": " , "},
        ]
        for params in bad:
            with self.assertRaises(ConfigValidationError, msg=params):
                ConfigLoader(data={"firefox": {"gecko_profiler_params": params}})


if __name__ == "__main__":
    unittest.main()
