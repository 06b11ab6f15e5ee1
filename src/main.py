#!/usr/bin/env python3

"""
Firefox Collector - Main Entry Point
Loads a URL a number of times and collects HAR, Gecko profiles and moz logs

This runner drives Firefox through Playwright, which only reaches content
pages. HAR capture works when the page exposes HAR.triggerExport(), which
the har-export-trigger extension normally provides; Playwright cannot load
extensions, so inject an equivalent with --init-script. Playwright has no
chrome-privileged channel, so Services.profiler is out of reach and the
Gecko profiler needs a harness that supplies its own ScriptRunner.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

from playwright.async_api import async_playwright

from config_loader import load_config
from firefox_delegate import FirefoxDelegate
from models import FirefoxOptions, IterationResult
from script_runner import PlaywrightScriptRunner
from storage import StorageManager

HAR_FILE = "browsertime.har"
METRICS_FILE = "collection_metrics.json"


def setup_logging(config) -> None:
    """Configure logging for the application"""
    log_file = config.get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, config.get_log_level(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_file}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Collect Firefox telemetry for repeated page loads",
        epilog=(
            "HAR capture needs HAR.triggerExport() in the page: pass a script that "
            "defines it with --init-script. The Gecko profiler needs chrome-privileged "
            "script access, which this Playwright runner does not have."
        ),
    )
    parser.add_argument("--url", required=True, help="URL to load")
    parser.add_argument("--iterations", "-n", type=int, default=3, help="Number of page loads")
    parser.add_argument("--alias", default=None, help="Alias for the URL (single page apps)")
    parser.add_argument("--config", default="config/settings.yaml", help="Path to settings.yaml")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--timeout", type=int, default=60, help="Navigation timeout in seconds")
    parser.add_argument(
        "--init-script",
        action="append",
        default=[],
        metavar="PATH",
        help="Script added to every page before it loads, e.g. one defining HAR.triggerExport (repeatable)",
    )
    return parser.parse_args(argv)


def cli_limitations(options: FirefoxOptions, init_scripts: Optional[List[str]] = None) -> List[str]:
    """What this runner cannot collect with the given settings"""
    warnings = []
    if not options.skip_har and not init_scripts:
        warnings.append(
            "HAR collection is on but no --init-script was given; without "
            "HAR.triggerExport in the page every iteration will fail to export"
        )
    if options.gecko_profiler:
        warnings.append(
            "gecko_profiler is on but Playwright pages cannot reach Services.profiler; "
            "profiles are only collected by a harness with a privileged ScriptRunner"
        )
    return warnings


async def run(args: argparse.Namespace, config) -> Path:
    logger = logging.getLogger(__name__)
    options = config.get_firefox_options()
    for warning in cli_limitations(options, args.init_script):
        logger.warning(warning)
    storage = StorageManager(config.get_result_dir())
    result_dir = storage.create_data_dir()
    delegate = FirefoxDelegate(storage, options)

    await delegate.on_start()
    async with async_playwright() as p:
        browser = await p.firefox.launch(headless=not args.headed)
        try:
            for index in range(1, args.iterations + 1):
                context = await browser.new_context()
                for script in args.init_script:
                    await context.add_init_script(path=script)
                page = await context.new_page()
                runner = PlaywrightScriptRunner(page)
                try:
                    await delegate.on_start_iteration(runner)
                    try:
                        await page.goto(args.url, wait_until="load", timeout=args.timeout * 1000)
                    except Exception as e:
                        logger.error(f"Iteration {index} failed to load {args.url}: {e}")
                        delegate.on_failure(args.url)
                        continue
                    await delegate.on_stop_iteration()
                    result = IterationResult(url=page.url or args.url, alias=args.alias, index=index)
                    await delegate.on_collect(runner, index, result)
                finally:
                    await context.close()
        finally:
            await browser.close()

    outcome = await delegate.on_stop()
    if outcome.get("har"):
        har_path = result_dir / HAR_FILE
        har_path.write_text(json.dumps(outcome["har"], indent=2), encoding="utf-8")
        logger.info(f"HAR written: {har_path}")
    else:
        logger.info("No HAR produced")

    metrics_path = delegate.metrics.write_json(result_dir / METRICS_FILE)
    logger.info(f"Collection metrics written: {metrics_path}")
    return result_dir


def main(argv=None) -> int:
    """Main execution function"""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("Make sure config/settings.yaml exists!")
        return 1
    except Exception as e:
        print(f"Error loading config: {e}")
        return 1

    setup_logging(config)
    logger = logging.getLogger(__name__)
    logger.info(f"Config: {config!r}")

    result_dir = asyncio.run(run(args, config))
    print(f"Results saved in {result_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
