"""
HAR helpers - body filtering, export normalization, merging and placeholders
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from models import ErrorKind, StepResult

logger = logging.getLogger(__name__)

HAR_VERSION = "1.2"
CREATOR_NAME = "firefox-collector"
CREATOR_VERSION = "0.1.0"
FAILING_PAGE_ID = "failing_page"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def apply_response_body_policy(har_log: Dict[str, Any], policy: str) -> None:
    """
    Strip captured response bodies in place.

    none: drop every body, html: keep bodies whose mimeType contains
    text/html, all: keep everything.
    """
    if policy == "all":
        return
    for entry in har_log.get("entries") or []:
        content = (entry.get("response") or {}).get("content")
        if not isinstance(content, dict):
            continue
        if policy == "html" and "text/html" in (content.get("mimeType") or ""):
            continue
        content.pop("text", None)


def normalize_export_result(raw: Any) -> StepResult:
    """
    Map what the HAR export trigger called back with onto {log: ...}.

    The callback value is either {'har': <har>} or {'error': <e>}, and <har>
    itself is {'log': {...}} on newer Firefox but the bare log on older ones.
    """
    if not isinstance(raw, dict):
        return StepResult.failure(
            ErrorKind.COLLECTION, f"Unexpected HAR export result: {raw!r}", step="har_export"
        )
    if "har" not in raw or raw.get("error") is not None:
        return StepResult.failure(
            ErrorKind.COLLECTION,
            f"Got an error from HAR Export Trigger {raw.get('error')!r}",
            step="har_export",
        )
    har = raw["har"]
    if not isinstance(har, dict):
        return StepResult.failure(
            ErrorKind.COLLECTION, f"HAR export returned {type(har).__name__}", step="har_export"
        )
    if isinstance(har.get("log"), dict):
        return StepResult.success(har)
    return StepResult.success({"log": har})


def get_empty_har(url: str, browser_name: str) -> Dict[str, Any]:
    """Placeholder HAR for an iteration that failed before anything was captured"""
    return {
        "log": {
            "version": HAR_VERSION,
            "creator": {"name": CREATOR_NAME, "version": CREATOR_VERSION, "comment": ""},
            "browser": {"name": browser_name, "version": ""},
            "pages": [
                {
                    "startedDateTime": _utc_now_iso(),
                    "id": FAILING_PAGE_ID,
                    "title": url,
                    "pageTimings": {},
                    "comment": "The page failed to load",
                    "_url": url,
                }
            ],
            "entries": [],
        }
    }


def merge_hars(hars: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge HARs into one, keeping pages and entries in list order.

    Page ids are prefixed with their position so two iterations that both
    call their page "page_1" stay distinct; entry pagerefs follow. The input
    HARs are left untouched.
    """
    if not hars:
        return {}

    first = hars[0]["log"]
    merged_log: Dict[str, Any] = {
        key: copy.deepcopy(value)
        for key, value in first.items()
        if key not in ("pages", "entries")
    }
    merged_log.setdefault("version", HAR_VERSION)
    merged_log["pages"] = []
    merged_log["entries"] = []

    for position, har in enumerate(hars):
        log = har.get("log") or {}
        id_map: Dict[str, str] = {}
        for page in log.get("pages") or []:
            page = copy.deepcopy(page)
            old_id = page.get("id", "")
            new_id = f"page_{position}_{old_id}" if len(hars) > 1 else old_id
            id_map[old_id] = new_id
            page["id"] = new_id
            merged_log["pages"].append(page)
        for entry in log.get("entries") or []:
            entry = copy.deepcopy(entry)
            if entry.get("pageref") in id_map:
                entry["pageref"] = id_map[entry["pageref"]]
            merged_log["entries"].append(entry)

    logger.debug(
        f"Merged {len(hars)} HARs into {len(merged_log['pages'])} pages "
        f"and {len(merged_log['entries'])} entries"
    )
    return {"log": merged_log}
