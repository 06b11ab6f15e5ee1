"""
Script runner - The single script execution channel into the browser
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from playwright.async_api import Page

logger = logging.getLogger(__name__)


class ScriptRunner(Protocol):
    """
    Webdriver-style script execution.

    `code` is a function body: sync scripts `return` their value, async
    scripts call `arguments[arguments.length - 1]` with it. Any failure is
    raised from the awaited call.
    """

    async def run_privileged_script(self, code: str, label: str) -> Any: ...

    async def run_privileged_async_script(self, code: str, label: str) -> Any: ...

    async def run_async_script(self, code: str, label: str) -> Any: ...


def wrap_sync_script(code: str) -> str:
    return f"(function() {{\n{code}\n}}).apply(null, [])"


def wrap_async_script(code: str) -> str:
    return (
        "new Promise((resolve) => {\n"
        f"(function() {{\n{code}\n}}).apply(null, [resolve]);\n"
        "})"
    )


class PlaywrightScriptRunner:
    """
    ScriptRunner on top of an async Playwright page.

    Playwright has no chrome-context channel, so privileged scripts are
    evaluated in `privileged_page`; pass a page that can see `Services`
    (a privileged document) to drive the profiler. Without one the
    profiler calls fail and are logged like any other collection error.
    """

    def __init__(self, page: Page, privileged_page: Page | None = None) -> None:
        self.page = page
        self.privileged_page = privileged_page or page

    async def _evaluate(self, page: Page, expression: str, label: str) -> Any:
        logger.debug(f"Executing script: {label}")
        return await page.evaluate(expression)

    async def run_script(self, code: str, label: str) -> Any:
        return await self._evaluate(self.page, wrap_sync_script(code), label)

    async def run_async_script(self, code: str, label: str) -> Any:
        return await self._evaluate(self.page, wrap_async_script(code), label)

    async def run_privileged_script(self, code: str, label: str) -> Any:
        return await self._evaluate(self.privileged_page, wrap_sync_script(code), label)

    async def run_privileged_async_script(self, code: str, label: str) -> Any:
        return await self._evaluate(self.privileged_page, wrap_async_script(code), label)
