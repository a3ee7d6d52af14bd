# src/cprunner/executor/registry.py
from __future__ import annotations
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..core.errors import UnknownLanguage
from ..core.models import ExecConfig
from .base import Executor
from .cpp import CppExecutor
from .python import PythonExecutor

ExecutorFactory = Callable[..., Executor]

EXTENSIONS: Dict[str, str] = {
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".py": "py",
}


def language_for(path: Union[str, Path]) -> str:
    suffix = Path(path).suffix.lower()
    try:
        return EXTENSIONS[suffix]
    except KeyError:
        raise UnknownLanguage(suffix.lstrip(".") or str(path))


class ExecutorRegistry:
    """Language tag -> executor factory. Filled at startup, read-only afterwards."""

    def __init__(self):
        self._factories: Dict[str, ExecutorFactory] = {}
        self._frozen = False

    def register(self, tag: str, factory: ExecutorFactory) -> None:
        if self._frozen:
            raise RuntimeError("executor registry is frozen")
        if tag in self._factories:
            raise ValueError(f"language '{tag}' is already registered")
        self._factories[tag] = factory

    def freeze(self) -> "ExecutorRegistry":
        self._frozen = True
        return self

    def resolve(self, tag: str) -> ExecutorFactory:
        try:
            return self._factories[tag]
        except KeyError:
            raise UnknownLanguage(tag)

    def create(self, tag: str, src_file: Union[str, Path], config: Optional[ExecConfig] = None) -> Executor:
        return self.resolve(tag)(src_file, config)

    def tags(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, tag: str) -> bool:
        return tag in self._factories


_DEFAULT: Optional[ExecutorRegistry] = None


def default_registry() -> ExecutorRegistry:
    global _DEFAULT
    if _DEFAULT is None:
        reg = ExecutorRegistry()
        reg.register("cpp", CppExecutor)
        reg.register("py", PythonExecutor)
        _DEFAULT = reg.freeze()
    return _DEFAULT
