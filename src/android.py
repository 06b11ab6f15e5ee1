"""
Android connection - adb access for profiles written on the device
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class AndroidError(RuntimeError):
    """Raised when an adb command fails or no device answers."""


class AndroidConnection:
    """Thin async wrapper around the adb binary"""

    def __init__(self, device_id: Optional[str] = None, adb_binary: str = "adb") -> None:
        self.device_id = device_id
        self.adb_binary = adb_binary
        self.connected = False

    def _adb_args(self, *args: str) -> List[str]:
        cmd = [self.adb_binary]
        if self.device_id:
            cmd.extend(["-s", self.device_id])
        cmd.extend(args)
        return cmd

    async def _run_adb_command(self, *args: str) -> str:
        """Run an adb command and return its stdout."""
        cmd = self._adb_args(*args)
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise AndroidError(
                "adb command not found. Please install Android SDK Platform Tools."
            ) from e
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise AndroidError(
                f"adb {' '.join(args)} failed ({proc.returncode}): "
                f"{stderr.decode('utf-8', 'replace').strip()}"
            )
        return stdout.decode("utf-8", "replace")

    async def init_connection(self) -> None:
        state = (await self._run_adb_command("get-state")).strip()
        if state != "device":
            raise AndroidError(f"Android device not ready, state is {state!r}")
        self.connected = True

    async def download_file(self, remote_path: str, local_path: Path) -> Path:
        """Pull a file from the device to the host"""
        local_path = Path(local_path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        await self._run_adb_command("pull", remote_path, str(local_path))
        logger.info(f"Pulled {remote_path} to {local_path}")
        return local_path


def create_android_connection(device_id: Optional[str] = None) -> AndroidConnection:
    return AndroidConnection(device_id=device_id)
