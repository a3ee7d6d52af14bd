from __future__ import annotations
from typing import Optional


class CpRunnerError(Exception):
    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg

    def __str__(self):
        return "{}: {}".format(type(self).__name__, self.msg)


class BuildError(CpRunnerError):
    """The toolchain could not produce a run target."""


class CompileError(BuildError):
    """The compiler ran but exited non-zero or left no artifact behind."""

    def __init__(self, msg: str, status: Optional[int] = None, stderr: str = ""):
        super().__init__(msg)
        self.status = status
        self.stderr = stderr


class CleanupError(CpRunnerError):
    pass


class NotBuiltError(CpRunnerError):
    pass


class UnknownLanguage(CpRunnerError):
    def __init__(self, tag: str):
        super().__init__(f"no executor registered for language '{tag}'")
        self.tag = tag


class ConfigError(CpRunnerError):
    pass
