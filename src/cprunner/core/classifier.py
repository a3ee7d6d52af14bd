# src/cprunner/core/classifier.py
from __future__ import annotations
import signal
from typing import Optional

from .models import ProcessOutcome, Result, ResultType, UsageStats

# signal sent by Executor.execute when the wall-clock deadline passes
TIMEOUT_SIGNAL = "SIGTERM"

SEGFAULT_HINT = " (Possible Segmentation Fault?)"
TIMEOUT_HINT = " (Possible timeout?)"

# 128 + SIGSEGV, how shells report a segfaulted child
_SHELL_SEGV_STATUS = 128 + signal.SIGSEGV


def _decode(buf: Optional[bytes]) -> str:
    if buf is None:
        return ""
    return buf.decode("utf-8", errors="replace")


def classify(outcome: ProcessOutcome, usage: Optional[UsageStats] = None) -> Result:
    """
    Map a finished process outcome to a Result.

    First match wins: spawn error, then termination signal, then exit status.
    Never raises for a well-formed outcome.
    """
    usage = usage or outcome.usage
    exec_time, memory = usage.elapsed_ms, usage.memory_kb

    if outcome.spawn_error is not None:
        err = outcome.spawn_error
        return Result(
            exit_type=ResultType.INTERNAL_ERROR,
            exit_detail=f"spawn() call failed: {type(err).__name__}: {err}",
            exec_time=exec_time,
            memory_usage=memory,
        )

    output, error = _decode(outcome.stdout), _decode(outcome.stderr)

    if outcome.signal is not None:
        detail = f"Killed by Signal: {outcome.signal}"
        if outcome.signal == TIMEOUT_SIGNAL:
            return Result(
                exit_type=ResultType.TIMEOUT,
                exit_detail=detail + TIMEOUT_HINT,
                error=error,
                exec_time=exec_time,
                memory_usage=memory,
            )
        if outcome.signal == "SIGSEGV":
            detail += SEGFAULT_HINT
        return Result(
            exit_type=ResultType.RUNTIME_ERROR,
            exit_detail=detail,
            output=output,
            error=error,
            exec_time=exec_time,
            memory_usage=memory,
        )

    status = outcome.status
    detail = f"Exit code: {status}"
    if status > 255 or status == _SHELL_SEGV_STATUS:
        detail += SEGFAULT_HINT

    return Result(
        exit_type=ResultType.SUCCESS if status == 0 else ResultType.RUNTIME_ERROR,
        exit_detail=detail,
        output=output,
        error=error,
        exec_time=exec_time,
        memory_usage=memory,
    )
