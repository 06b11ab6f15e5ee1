"""
Profiler Controller - Drives the Gecko profiler for one iteration at a time
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from android import AndroidConnection, create_android_connection
from models import ErrorKind, FirefoxOptions, ProfilerApi, ProfilerSession, StepResult
from profiler_defaults import (
    ANDROID_PROFILE_DIR,
    ANDROID_SAMPLING_INTERVAL,
    DESKTOP_SAMPLING_INTERVAL,
)
from script_runner import ScriptRunner

logger = logging.getLogger(__name__)

START_PROFILER_LENGTH_SCRIPT = "return Services.profiler.StartProfiler.length;"
STOP_PROFILER_SCRIPT = "Services.profiler.StopProfiler();"


def _js_array(values: list[str]) -> str:
    return '["' + '","'.join(values) + '"]'


def _js_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_start_script(session: ProfilerSession) -> Optional[str]:
    """StartProfiler call for the API shape the browser reported, None if unknown"""
    features = _js_array(session.features)
    threads = _js_array(session.threads)
    interval = _js_number(session.interval)
    if session.api_variant == ProfilerApi.SEVEN_ARG:
        return (
            f"Services.profiler.StartProfiler({session.buffer_size},{interval},{features},"
            f"{len(session.features)},{threads},{len(session.threads)});"
        )
    if session.api_variant == ProfilerApi.FIVE_ARG:
        return (
            f"Services.profiler.StartProfiler({session.buffer_size},{interval},"
            f"{features},{threads});"
        )
    return None


def build_dump_script(device_path: str) -> str:
    # String.raw keeps Windows backslashes intact
    return f"""
      var callback = arguments[arguments.length - 1];
      Services.profiler.dumpProfileToFileAsync(String.raw`{device_path}`)
        .then(callback)
        .catch((e) => callback({{'error': String(e)}}));
    """


class ProfilerController:
    """Start, dump and stop the sampling profiler around each iteration"""

    def __init__(self, options: FirefoxOptions,
                 android: Optional[AndroidConnection] = None) -> None:
        self.options = options
        self.android = android
        self.session: Optional[ProfilerSession] = None
        self.session_runner: Optional[ScriptRunner] = None
        self.unsupported = False

    @property
    def enabled(self) -> bool:
        return self.options.gecko_profiler and not self.unsupported

    def _sampling_interval(self) -> float:
        interval = self.options.gecko_profiler_params.interval
        if interval:
            return interval
        # The device decides, not the host OS
        if self.options.android:
            return ANDROID_SAMPLING_INTERVAL
        return DESKTOP_SAMPLING_INTERVAL

    def reset(self) -> None:
        """Forget the previous run: API support is probed again"""
        self.session = None
        self.session_runner = None
        self.unsupported = False

    async def start_if_enabled(self, runner: ScriptRunner) -> StepResult:
        if not self.enabled:
            return StepResult.skip()

        if self.session is not None:
            logger.warning("Previous Gecko profiler session was never collected, stopping it")
            await self.stop_if_running(runner)

        params = self.options.gecko_profiler_params
        try:
            arity = await runner.run_privileged_script(
                START_PROFILER_LENGTH_SCRIPT, "Get StartProfiler.length"
            )
        except Exception as e:
            logger.error(f"Could not read the Gecko Profiler API: {e}")
            return StepResult.failure(ErrorKind.COLLECTION, str(e), step="profiler_start", cause=e)

        session = ProfilerSession(
            features=params.feature_list(),
            threads=params.thread_list(),
            interval=self._sampling_interval(),
            buffer_size=params.buffer_size,
            api_variant=ProfilerApi.from_arity(arity),
        )
        script = build_start_script(session)
        if script is None:
            logger.error(f"Unknown Gecko Profiler API (StartProfiler takes {arity!r} arguments)")
            self.unsupported = True
            return StepResult.failure(
                ErrorKind.UNSUPPORTED_API,
                f"StartProfiler.length is {arity!r}",
                step="profiler_start",
            )

        logger.info("Start GeckoProfiler.")
        try:
            await runner.run_privileged_script(script, "Start GeckoProfiler")
        except Exception as e:
            logger.error(f"Could not start the Gecko Profiler: {e}")
            return StepResult.failure(ErrorKind.COLLECTION, str(e), step="profiler_start", cause=e)

        self.session = session
        self.session_runner = runner
        return StepResult.success(session)

    async def stop_if_running(self, runner: Optional[ScriptRunner] = None) -> None:
        """Stop a session that was started but never dumped"""
        if self.session is None:
            return
        try:
            await self._stop(runner or self.session_runner)
        finally:
            self.session = None
            self.session_runner = None

    async def stop_and_collect(self, runner: ScriptRunner, destination_path: Path,
                               is_remote: bool) -> StepResult:
        """
        Dump the profile, stop the profiler and bring the file to the host.

        The stop call runs even when the dump failed. The session is gone
        afterwards whatever happened.
        """
        if self.session is None:
            return StepResult.skip()

        destination_path = Path(destination_path)
        device_path = str(destination_path)
        if is_remote:
            device_path = f"{ANDROID_PROFILE_DIR}/{destination_path.name}"

        try:
            result = await self._dump(runner, device_path)
            await self._stop(runner)
            if not result.ok:
                return result
            if not is_remote:
                return StepResult.success(destination_path)
            return await self._download(device_path, destination_path)
        finally:
            self.session = None
            self.session_runner = None

    async def _dump(self, runner: ScriptRunner, device_path: str) -> StepResult:
        try:
            value = await runner.run_privileged_async_script(
                build_dump_script(device_path), "Collect GeckoProfiler"
            )
        except Exception as e:
            logger.error(f"Could not dump the Gecko profile to {device_path}: {e}")
            return StepResult.failure(ErrorKind.COLLECTION, str(e), step="profiler_dump", cause=e)
        if isinstance(value, dict) and value.get("error") is not None:
            logger.error(f"Gecko profiler dump failed: {value['error']}")
            return StepResult.failure(ErrorKind.COLLECTION, str(value["error"]), step="profiler_dump")
        return StepResult.success(device_path)

    async def _stop(self, runner: ScriptRunner) -> None:
        logger.info("Stop GeckoProfiler.")
        try:
            await runner.run_privileged_script(STOP_PROFILER_SCRIPT, "Stop GeckoProfiler")
        except Exception as e:
            logger.error(f"Could not stop the Gecko Profiler: {e}")

    async def _download(self, device_path: str, destination_path: Path) -> StepResult:
        try:
            if self.android is None:
                self.android = create_android_connection(self.options.android_device_id)
            await self.android.init_connection()
            await self.android.download_file(device_path, destination_path)
        except Exception as e:
            logger.error(f"Could not pull {device_path} from the device: {e}")
            return StepResult.failure(ErrorKind.TRANSFER, str(e), step="profiler_transfer", cause=e)
        return StepResult.success(destination_path)
