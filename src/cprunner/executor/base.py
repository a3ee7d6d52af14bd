# src/cprunner/executor/base.py
from __future__ import annotations
import os
import signal
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import structlog

from ..core.classifier import TIMEOUT_SIGNAL, classify
from ..core.errors import BuildError, NotBuiltError
from ..core.models import ExecConfig, ProcessOutcome, Result
from .sampler import ResourceSampler

log = structlog.get_logger(__name__)

_POSIX = os.name == "posix"


class ExecutorState(str, Enum):
    NEW = "NEW"
    BUILT = "BUILT"
    CLEANED = "CLEANED"


def _signal_name(returncode: int) -> str:
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"SIG{-returncode}"


class Executor(ABC):
    """
    One build / run / cleanup cycle for a single source file.

    Lifecycle: NEW --build()--> BUILT --cleanup()--> CLEANED.
    run() and execute() are only valid while BUILT and keep no state between
    calls, so a built executor may be run from several threads.
    """

    language: str = ""

    def __init__(self, src_file: Union[str, Path], config: Optional[ExecConfig] = None):
        self.src_file = Path(src_file)
        self.exec_file: Optional[Path] = None
        self.config = config or ExecConfig()
        self.state = ExecutorState.NEW
        self.log = log.bind(language=self.language, src=str(self.src_file))

    # ------------ lifecycle ------------

    def build(self) -> Path:
        if self.state is not ExecutorState.NEW:
            raise BuildError(f"{self.src_file} was already built")
        self.log.info("build.start")
        target = self._build()
        self.state = ExecutorState.BUILT
        self.log.info("build.finish", target=str(target))
        return target

    def cleanup(self) -> None:
        if self.state is ExecutorState.NEW:
            raise NotBuiltError(f"{self.src_file} has not been built")
        try:
            self._cleanup()
        finally:
            self.state = ExecutorState.CLEANED
        self.log.info("cleanup.finish")

    @abstractmethod
    def _build(self) -> Path: ...

    @abstractmethod
    def _cleanup(self) -> None: ...

    @abstractmethod
    def command(self) -> List[str]:
        """argv that runs the built target."""

    # ------------ run ------------

    def _ensure_built(self):
        if self.state is not ExecutorState.BUILT:
            raise NotBuiltError(f"{self.src_file} is not built (state={self.state.value})")

    def execute(self, input: str) -> ProcessOutcome:
        """
        Spawn the run target, feed `input` on stdin and wait for it to exit
        or for the timeout to pass. Sampling runs alongside the child and is
        stopped as soon as the child has exited.
        """
        self._ensure_built()
        argv = self.command()
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as e:
            self.log.warning("run.spawn_failed", argv=argv, error=str(e))
            return ProcessOutcome(spawn_error=e)

        sampler = ResourceSampler(proc.pid, self.config.sample_interval_ms).start()
        timed_out = False
        try:
            out, err = proc.communicate(
                input=input.encode("utf-8"),
                timeout=self.config.timeout_ms / 1000.0,
            )
        except subprocess.TimeoutExpired:
            timed_out = True
            out, err = self._terminate(proc)
        finally:
            usage = sampler.stop()
            # background children of the run die with it
            self._kill_leftovers(proc)

        rc = proc.returncode
        if timed_out:
            status, sig = None, TIMEOUT_SIGNAL
        elif rc < 0:
            status, sig = None, _signal_name(rc)
        else:
            status, sig = rc, None

        self.log.info("run.finish", pid=proc.pid, status=status, signal=sig,
                      elapsed_ms=round(usage.elapsed_ms, 3), memory_kb=usage.memory_kb)
        return ProcessOutcome(
            pid=proc.pid,
            status=status,
            signal=sig,
            stdout=out or b"",
            stderr=err or b"",
            usage=usage,
        )

    def _signal_group(self, proc: subprocess.Popen, kill: bool) -> None:
        """Signal the run's whole session so forked children go down too."""
        if not _POSIX:
            if kill:
                proc.kill()
            else:
                proc.terminate()
            return
        try:
            os.killpg(proc.pid, signal.SIGKILL if kill else signal.SIGTERM)
        except (ProcessLookupError, PermissionError):
            pass

    def _kill_leftovers(self, proc: subprocess.Popen) -> None:
        if _POSIX:
            self._signal_group(proc, kill=True)

    def _terminate(self, proc: subprocess.Popen):
        """SIGTERM, then SIGKILL once the grace period is over. Bounded."""
        grace = self.config.kill_grace_ms / 1000.0
        self._signal_group(proc, kill=False)
        try:
            return proc.communicate(timeout=grace)
        except subprocess.TimeoutExpired:
            pass
        self.log.warning("run.kill", pid=proc.pid)
        self._signal_group(proc, kill=True)
        try:
            return proc.communicate(timeout=grace)
        except subprocess.TimeoutExpired:
            # a child escaped the session and still holds the pipes
            self.log.warning("run.pipes_abandoned", pid=proc.pid)
            proc.kill()
            proc.wait()
            for pipe in (proc.stdout, proc.stderr):
                pipe.close()
            return b"", b""

    def run(self, input: str) -> Result:
        return classify(self.execute(input))

    def __repr__(self):
        return f"{type(self).__name__}({str(self.src_file)!r}, state={self.state.value})"
