"""
HAR Collector - Triggers the in-page HAR export and keeps one HAR per iteration
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from alias_resolver import AliasUrlResolver
from har import apply_response_body_policy, get_empty_har, merge_hars, normalize_export_result
from models import ErrorKind, FirefoxOptions, IterationResult, StepResult
from script_runner import ScriptRunner

logger = logging.getLogger(__name__)

BROWSER_NAME = "Firefox"

GET_HAR_SCRIPT = """
    var callback = arguments[arguments.length - 1];
    function triggerExport() {
      HAR.triggerExport()
        .then((result) => {
          var pages = result.log ? result.log.pages : result.pages;
          if (pages && pages.length > 0) {
            pages[0].title = document.URL;
          }
          return callback({'har': result});
        })
        .catch((e) => callback({'error': String(e)}));
    };
    triggerExport();
"""


class HarCollector:
    """Collects, filters and merges the HARs of a run"""

    def __init__(self, options: FirefoxOptions, resolver: AliasUrlResolver) -> None:
        self.skip_har = options.skip_har
        self.include_response_bodies = options.include_response_bodies
        self.resolver = resolver
        self.hars: List[Dict[str, Any]] = []

    def reset(self) -> None:
        self.hars = []

    async def capture_iteration(self, runner: ScriptRunner,
                                result: IterationResult) -> StepResult:
        if self.skip_har:
            return StepResult.skip()

        logger.info("Waiting on har-export-trigger to collect the HAR")
        try:
            raw = await runner.run_async_script(GET_HAR_SCRIPT, "GET_HAR_SCRIPT")
        except Exception as e:
            logger.error(f"Could not get the HAR from Firefox: {e}")
            return StepResult.failure(ErrorKind.COLLECTION, str(e), step="har_export", cause=e)

        normalized = normalize_export_result(raw)
        if not normalized.ok:
            logger.error(str(normalized.error))
            return normalized

        har = normalized.value
        log = har["log"]
        apply_response_body_policy(log, self.include_response_bodies)
        self._tag_page_url(log, result)

        self.hars.append(har)
        return StepResult.success(har)

    def _tag_page_url(self, log: Dict[str, Any], result: IterationResult) -> Optional[str]:
        pages = log.get("pages")
        if not pages:
            logger.warning(f"HAR for {result.url} has no pages, keeping entries only")
            return None
        url = self.resolver.resolve(result.alias, result.url)
        pages[0]["_url"] = url
        return url

    def record_failure(self, url: str) -> None:
        if self.skip_har:
            return
        self.hars.append(get_empty_har(url, BROWSER_NAME))

    def merge_all(self) -> Dict[str, Any]:
        if self.skip_har or not self.hars:
            return {}
        return merge_hars(self.hars)

    def __len__(self) -> int:
        return len(self.hars)
