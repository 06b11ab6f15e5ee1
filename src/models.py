"""
Data models for the Firefox collector
Defines iteration results, profiler settings and collection outcomes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

from profiler_defaults import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_FEATURES,
    DEFAULT_THREADS,
)


class IterationResult(BaseModel):
    """What the harness knows about one finished iteration"""

    url: str
    alias: Optional[str] = None
    index: int = 0

    def __str__(self) -> str:
        if self.alias:
            return f"#{self.index} {self.url} ({self.alias})"
        return f"#{self.index} {self.url}"


class GeckoProfilerParams(BaseModel):
    """Sampling profiler parameters, comma separated like the CLI flags"""

    features: str = DEFAULT_FEATURES
    threads: str = DEFAULT_THREADS
    interval: Optional[float] = None
    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, alias="bufferSize")

    model_config = {"populate_by_name": True}

    def feature_list(self) -> List[str]:
        return [f.strip() for f in self.features.split(",") if f.strip()]

    def thread_list(self) -> List[str]:
        return [t.strip() for t in self.threads.split(",") if t.strip()]


class FirefoxOptions(BaseModel):
    """Options the delegate reads for HAR, profiler and log collection"""

    skip_har: bool = False
    include_response_bodies: Literal["none", "html", "all"] = "none"
    gecko_profiler: bool = False
    gecko_profiler_params: GeckoProfilerParams = Field(default_factory=GeckoProfilerParams)
    collect_moz_log: bool = False

    # Run-level settings the delegate needs but that live outside `firefox:`
    android: bool = False
    android_device_id: Optional[str] = None
    use_hash: bool = False


class ProfilerApi(str, Enum):
    """Shape of Services.profiler.StartProfiler in the running browser"""

    SEVEN_ARG = "seven_arg"
    FIVE_ARG = "five_arg"
    UNKNOWN = "unknown"

    @classmethod
    def from_arity(cls, arity: Any) -> "ProfilerApi":
        if arity == 7:
            return cls.SEVEN_ARG
        if arity == 5:
            return cls.FIVE_ARG
        return cls.UNKNOWN


@dataclass
class ProfilerSession:
    """Lives between profiler start and stop of a single iteration."""

    features: List[str]
    threads: List[str]
    interval: float
    buffer_size: int
    api_variant: ProfilerApi


class ErrorKind(str, Enum):
    UNSUPPORTED_API = "unsupported_api"
    COLLECTION = "collection"
    TRANSFER = "transfer"
    STRUCTURAL = "structural"
    MISSING_ARTIFACT = "missing_artifact"


class FailurePolicy(str, Enum):
    LOG_AND_CONTINUE = "log_and_continue"
    LOG_AND_SKIP_FEATURE = "log_and_skip_feature"
    TOLERATE = "tolerate"


FAILURE_POLICY = {
    ErrorKind.UNSUPPORTED_API: FailurePolicy.LOG_AND_SKIP_FEATURE,
    ErrorKind.COLLECTION: FailurePolicy.LOG_AND_CONTINUE,
    ErrorKind.TRANSFER: FailurePolicy.LOG_AND_CONTINUE,
    ErrorKind.STRUCTURAL: FailurePolicy.TOLERATE,
    ErrorKind.MISSING_ARTIFACT: FailurePolicy.LOG_AND_CONTINUE,
}


@dataclass
class CollectionError:
    """A failure inside one collection step, never raised to the harness."""

    kind: ErrorKind
    message: str
    step: str = ""
    cause: Optional[BaseException] = None

    @property
    def policy(self) -> FailurePolicy:
        return FAILURE_POLICY[self.kind]

    def __str__(self) -> str:
        prefix = f"[{self.step}] " if self.step else ""
        return f"{prefix}{self.kind.value}: {self.message}"


@dataclass
class StepResult:
    """Outcome of one collection step: a value or a CollectionError."""

    value: Any = None
    error: Optional[CollectionError] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped

    @classmethod
    def success(cls, value: Any = None) -> "StepResult":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, step: str = "",
                cause: Optional[BaseException] = None) -> "StepResult":
        return cls(error=CollectionError(kind=kind, message=message, step=step, cause=cause))

    @classmethod
    def skip(cls) -> "StepResult":
        return cls(skipped=True)
