"""
Storage - Result directory layout for per-URL artifacts
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_UNSAFE_SEGMENT = re.compile(r"[^-a-z0-9_.\u0621-\u064A]", re.IGNORECASE)


def path_to_folder(url: str, use_hash: bool = False, alias: Optional[str] = None) -> str:
    """
    Relative folder for artifacts of one URL.

    https://www.example.com/a/b?x=1 -> pages/www_example_com/a/b/query-<md5[:8]>/
    """
    parsed = urlparse(url)
    segments = ["pages", (parsed.hostname or "unknown").replace(".", "_")]

    url_segments = []
    if alias:
        url_segments.append(alias)
    else:
        url_segments.extend(s for s in parsed.path.split("/") if s)
        if use_hash and parsed.fragment:
            url_segments.append(parsed.fragment)
        if parsed.query:
            digest = hashlib.md5(f"?{parsed.query}".encode("utf-8")).hexdigest()[:8]
            url_segments.append(f"query-{digest}")

    segments.extend(_UNSAFE_SEGMENT.sub("_", s) for s in url_segments)
    return "/".join(segments) + "/"


class StorageManager:
    """Owns the run result directory and hands out sub directories."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def create_data_dir(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def create_sub_data_dir(self, relative_path: str) -> Path:
        """Create (if needed) and return an absolute sub directory"""
        path = (self.directory / relative_path).resolve()
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created {path}")
        return path
