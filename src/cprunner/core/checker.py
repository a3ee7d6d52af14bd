from __future__ import annotations
from typing import Callable, Dict

from .errors import ConfigError

Checker = Callable[[str, str], bool]

DEFAULT_CHECKER = "tokens"


def identical(expected: str, actual: str) -> bool:
    return expected == actual


def tokens(expected: str, actual: str) -> bool:
    """Whitespace-insensitive comparison, the usual judge behaviour."""
    return expected.split() == actual.split()


def lines(expected: str, actual: str) -> bool:
    def norm(s: str):
        out = [l.rstrip() for l in s.splitlines()]
        while out and not out[-1]:
            out.pop()
        return out

    return norm(expected) == norm(actual)


CHECKERS: Dict[str, Checker] = {
    "identical": identical,
    "tokens": tokens,
    "lines": lines,
}


def get_checker(name: str) -> Checker:
    try:
        return CHECKERS[name]
    except KeyError:
        raise ConfigError(f"unknown checker '{name}' (choose from {', '.join(sorted(CHECKERS))})")
