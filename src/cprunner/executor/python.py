# src/cprunner/executor/python.py
from __future__ import annotations
import shutil
import sys
from pathlib import Path
from typing import List

from ..core.errors import BuildError
from .base import Executor


class PythonExecutor(Executor):
    """The source file is its own run target; build only validates it."""

    language = "py"

    @property
    def interpreter(self) -> str:
        return self.config.toolchain or sys.executable

    def _build(self) -> Path:
        resolved = shutil.which(self.interpreter)
        if resolved is None:
            raise BuildError(f"interpreter '{self.interpreter}' not found")
        if not self.src_file.is_file():
            raise BuildError(f"source file {self.src_file} does not exist")
        return self.src_file

    def command(self) -> List[str]:
        return [self.interpreter, str(self.src_file)]

    def _cleanup(self) -> None:
        pass
