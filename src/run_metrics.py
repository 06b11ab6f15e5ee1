import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CollectionMetrics:
    """
    Per-run collection counters.

    Collection is best effort, so a run can finish with missing profiles or
    HARs; the counters and events say which iterations lost what.
    """

    browser: str = "firefox"
    started_at_iso: str = field(default_factory=_utc_now_iso)
    started_at_monotonic: float = field(default_factory=time.monotonic)
    ended_at_iso: Optional[str] = None
    duration_seconds: Optional[float] = None
    counters: Dict[str, int] = field(default_factory=dict)
    events: list[dict[str, Any]] = field(default_factory=list)

    def inc(self, key: str, amount: int = 1) -> None:
        if not key:
            return
        self.counters[key] = int(self.counters.get(key, 0)) + int(amount)

    def get(self, key: str) -> int:
        return int(self.counters.get(key, 0))

    def record_event(self, kind: str, **data: Any) -> None:
        if not kind:
            return
        payload: dict[str, Any] = {"t": _utc_now_iso(), "kind": kind}
        payload.update({k: v for k, v in data.items() if v is not None})
        self.events.append(payload)

    def finish(self) -> None:
        """Mark the run as finished and record end time."""
        if self.ended_at_iso is None:
            self.ended_at_iso = _utc_now_iso()
            self.duration_seconds = max(time.monotonic() - self.started_at_monotonic, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        ended_at = self.ended_at_iso or _utc_now_iso()
        duration = self.duration_seconds
        if duration is None:
            duration = max(time.monotonic() - self.started_at_monotonic, 0.0)
        payload: Dict[str, Any] = {
            "browser": self.browser,
            "started_at": self.started_at_iso,
            "ended_at": ended_at,
            "duration_seconds": round(duration, 6),
            "counters": dict(self.counters),
        }
        if self.events:
            payload["events"] = list(self.events)
        return payload

    def write_json(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        return path
