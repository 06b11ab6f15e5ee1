"""
Firefox Delegate - Sequences profiler, moz log and HAR collection per iteration
"""

from __future__ import annotations

import logging
import shutil
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from alias_resolver import AliasUrlResolver
from android import AndroidConnection
from har_collector import HarCollector
from models import ErrorKind, FailurePolicy, FirefoxOptions, IterationResult, StepResult
from profiler import ProfilerController
from run_metrics import CollectionMetrics
from script_runner import ScriptRunner
from storage import StorageManager, path_to_folder

logger = logging.getLogger(__name__)

MOZ_LOG_FILE = "moz_log.txt"


class DelegateState(str, Enum):
    IDLE = "idle"
    STARTED = "started"
    ITERATING = "iterating"
    STOPPED = "stopped"


class FirefoxDelegate:
    """
    Per-iteration telemetry collection for Firefox runs.

    The harness calls on_start once, then for every iteration
    on_start_iteration, on_stop_iteration and on_collect (or on_failure when
    the page never loaded), and on_stop at the end. Collection runs in
    on_collect because the browser must still be reachable for the scripts.
    Nothing collected here raises into the harness.
    """

    def __init__(self, storage_manager: StorageManager, options: FirefoxOptions,
                 android: Optional[AndroidConnection] = None) -> None:
        self.storage_manager = storage_manager
        self.base_dir = storage_manager.directory
        self.options = options
        self.resolver = AliasUrlResolver()
        self.profiler = ProfilerController(options, android=android)
        self.har_collector = HarCollector(options, self.resolver)
        self.metrics = CollectionMetrics()
        self.state = DelegateState.IDLE

    def _expect_state(self, operation: str, *allowed: DelegateState) -> bool:
        if self.state in allowed:
            return True
        logger.warning(f"Ignoring {operation} while the delegate is {self.state.value}")
        return False

    async def on_start(self) -> None:
        self.har_collector.reset()
        self.resolver.reset()
        self.profiler.reset()
        self.metrics = CollectionMetrics()
        self.state = DelegateState.STARTED

    async def on_start_iteration(self, runner: ScriptRunner) -> None:
        if not self._expect_state("on_start_iteration", DelegateState.STARTED, DelegateState.ITERATING):
            return
        self.state = DelegateState.ITERATING
        if not self.options.gecko_profiler:
            return
        result = await self.profiler.start_if_enabled(runner)
        self._account("profiler_start", result)

    async def on_stop_iteration(self) -> None:
        pass

    async def clear(self) -> None:
        pass

    def _url_dir(self, url: str, alias: Optional[str] = None) -> Path:
        return self.storage_manager.create_sub_data_dir(
            path_to_folder(url, use_hash=self.options.use_hash, alias=alias)
        )

    async def on_collect(self, runner: ScriptRunner, index: int,
                         result: IterationResult) -> Dict[str, StepResult]:
        outcomes: Dict[str, StepResult] = {}
        if not self._expect_state("on_collect", DelegateState.ITERATING):
            return outcomes

        if self.options.collect_moz_log:
            outcomes["moz_log"] = self._relocate_moz_log(index, result)

        if self.options.gecko_profiler:
            outcomes["profiler"] = await self._collect_profile(runner, index, result)

        if not self.options.skip_har:
            try:
                outcomes["har"] = await self.har_collector.capture_iteration(runner, result)
            except Exception as e:
                logger.error(f"Could not get the HAR from Firefox for {result}: {e}", exc_info=True)
                outcomes["har"] = StepResult.failure(
                    ErrorKind.COLLECTION, str(e), step="har_export", cause=e
                )
            self._account("har", outcomes["har"])

        return outcomes

    def _relocate_moz_log(self, index: int, result: IterationResult) -> StepResult:
        source = Path(self.base_dir) / MOZ_LOG_FILE
        if not source.exists():
            logger.warning(f"No {MOZ_LOG_FILE} in {self.base_dir} for iteration {index}")
            self.metrics.inc("moz_logs_missing")
            return StepResult.failure(
                ErrorKind.MISSING_ARTIFACT, f"{source} does not exist", step="moz_log"
            )
        try:
            destination = self._url_dir(result.url, result.alias) / f"moz_log-{index}.txt"
            shutil.move(str(source), str(destination))
        except OSError as e:
            logger.error(f"Could not move {source}: {e}")
            return StepResult.failure(ErrorKind.COLLECTION, str(e), step="moz_log", cause=e)
        self.metrics.inc("moz_logs_relocated")
        return StepResult.success(destination)

    async def _collect_profile(self, runner: ScriptRunner, index: int,
                               result: IterationResult) -> StepResult:
        try:
            destination = self._url_dir(result.url, result.alias) / f"geckoProfile-{index}.json"
            outcome = await self.profiler.stop_and_collect(
                runner, destination, is_remote=self.options.android
            )
        except Exception as e:
            logger.error(f"Could not collect the Gecko profile for {result}: {e}", exc_info=True)
            outcome = StepResult.failure(ErrorKind.COLLECTION, str(e), step="profiler", cause=e)
        self._account("profiler", outcome)
        return outcome

    def _account(self, step: str, result: StepResult) -> None:
        if result.skipped:
            return
        if result.ok:
            if step == "har":
                self.metrics.inc("har_captured")
            elif step == "profiler":
                self.metrics.inc("profiles_collected")
            return

        error = result.error
        self.metrics.inc("har_failed" if step == "har" else "profiler_errors")
        self.metrics.record_event(
            error.kind.value, step=error.step or step, message=error.message
        )
        if error.policy == FailurePolicy.LOG_AND_SKIP_FEATURE:
            logger.warning(f"Skipping {step} for the rest of the run: {error}")

    def on_failure(self, url: str) -> None:
        if not self._expect_state("on_failure", DelegateState.STARTED, DelegateState.ITERATING):
            return
        if self.options.skip_har:
            return
        self.har_collector.record_failure(url)
        self.metrics.inc("har_placeholders")

    async def on_stop(self) -> Dict[str, Any]:
        if not self._expect_state("on_stop", DelegateState.STARTED, DelegateState.ITERATING):
            return {}
        self.state = DelegateState.STOPPED
        # An iteration that failed after the profiler started never reached on_collect
        await self.profiler.stop_if_running()
        self.metrics.finish()
        merged = self.har_collector.merge_all()
        if merged:
            return {"har": merged}
        return {}
