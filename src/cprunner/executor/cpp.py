# src/cprunner/executor/cpp.py
from __future__ import annotations
import os
import shlex
import subprocess
from pathlib import Path
from typing import List

from ..core.errors import BuildError, CleanupError, CompileError
from .base import Executor

DEFAULT_COMPILER = "g++"
DEFAULT_COMPILER_ARGS = "-Wall -O0 -DLOCAL"


class CppExecutor(Executor):
    """Compile with g++ (or a configured compatible compiler), run the binary."""

    language = "cpp"

    def artifact_path(self) -> Path:
        suffix = ".exe" if os.name == "nt" else ""
        return self.src_file.with_suffix(suffix)

    def compile_command(self, exec_file: Path) -> List[str]:
        compiler = self.config.toolchain or DEFAULT_COMPILER
        args = self.config.compiler_args or DEFAULT_COMPILER_ARGS
        return [compiler, "-o", str(exec_file), str(self.src_file), *shlex.split(args)]

    def _build(self) -> Path:
        exec_file = self.artifact_path()
        if exec_file == self.src_file:
            raise BuildError(f"{self.src_file} has no extension to replace")
        argv = self.compile_command(exec_file)
        self.log.debug("build.compile", argv=argv)
        try:
            proc = subprocess.run(argv, capture_output=True, text=True, check=False)
        except OSError as e:
            raise BuildError(f"could not start compiler '{argv[0]}': {e}") from e

        if proc.returncode != 0:
            self.log.warning("build.compile_failed", status=proc.returncode)
            raise CompileError(
                f"{argv[0]} exited with status {proc.returncode}",
                status=proc.returncode,
                stderr=proc.stderr,
            )
        if not exec_file.is_file():
            raise CompileError(f"{argv[0]} produced no executable at {exec_file}", stderr=proc.stderr)
        if proc.stderr:
            self.log.info("build.warnings", stderr=proc.stderr)

        self.exec_file = exec_file
        return exec_file

    def command(self) -> List[str]:
        return [str(self.exec_file)]

    def _cleanup(self) -> None:
        try:
            self.exec_file.unlink()
        except OSError as e:
            self.log.warning("cleanup.failed", exec_file=str(self.exec_file), error=str(e))
            raise CleanupError(f"could not remove {self.exec_file}: {e}") from e
