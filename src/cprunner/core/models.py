from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ResultType(str, Enum):
    SUCCESS = "Success"
    TIMEOUT = "Timeout"
    RUNTIME_ERROR = "Runtime Error"
    INTERNAL_ERROR = "Internal Error (spawn() call failed)"


@dataclass(frozen=True)
class UsageStats:
    elapsed_ms: float
    memory_kb: float

    @classmethod
    def zero(cls) -> "UsageStats":
        return cls(elapsed_ms=0.0, memory_kb=0.0)


@dataclass
class ProcessOutcome:
    """Raw outcome of one spawn, before classification."""
    pid: Optional[int] = None
    status: Optional[int] = None
    signal: Optional[str] = None   # signal name, e.g. "SIGTERM"
    stdout: bytes = b""
    stderr: bytes = b""
    spawn_error: Optional[BaseException] = None
    usage: UsageStats = field(default_factory=UsageStats.zero)

    def __post_init__(self):
        if self.spawn_error is None and self.signal is None and self.status is None:
            raise ValueError("outcome has neither a spawn error, a signal nor an exit status")


@dataclass(frozen=True)
class Result:
    exit_type: ResultType
    exit_detail: str
    exec_time: float      # ms
    memory_usage: float   # KB
    error: Optional[str] = None
    output: Optional[str] = None

    def __post_init__(self):
        if self.exit_type is ResultType.TIMEOUT and self.output is not None:
            raise ValueError("a timed out result carries no output")
        if self.exit_type is ResultType.INTERNAL_ERROR and (
            self.output is not None or self.error is not None
        ):
            raise ValueError("an internal error result carries no output or error")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "exitType": self.exit_type.value,
            "exitDetail": self.exit_detail,
            "execTime": self.exec_time,
            "memoryUsage": self.memory_usage,
        }
        if self.error is not None:
            out["error"] = self.error
        if self.output is not None:
            out["output"] = self.output
        return out


@dataclass(frozen=True)
class ExecConfig:
    timeout_ms: int = 5000
    compiler_args: str = ""
    toolchain: str = ""
    sample_interval_ms: int = 500
    kill_grace_ms: int = 200


@dataclass
class TestCase:
    __test__ = False

    input: str
    expected_output: Optional[str] = None


@dataclass
class CaseReport:
    index: int
    result: Result
    verdict: Optional[bool] = None   # None when there was nothing to check
