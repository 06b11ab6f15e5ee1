"""
Alias URL Resolver - Keeps one URL per alias for single page app navigations
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class AliasUrlResolver:
    """
    Maps an alias to the first URL it was seen with.

    Client side route changes that share an alias report a different URL on
    every iteration; the HAR pages for that alias all get the first one so
    runs can be compared. The table lives for one run, see reset().
    """

    def __init__(self) -> None:
        self.table: Dict[str, str] = {}

    def resolve(self, alias: Optional[str], observed_url: str) -> str:
        if not alias:
            return observed_url
        bound = self.table.get(alias)
        if bound is None:
            self.table[alias] = observed_url
            return observed_url
        if bound != observed_url:
            logger.debug(f"Alias {alias} already bound to {bound}, ignoring {observed_url}")
        return bound

    def reset(self) -> None:
        self.table = {}

    def __len__(self) -> int:
        return len(self.table)
