from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.checker import DEFAULT_CHECKER, get_checker
from .core.errors import ConfigError
from .core.models import ExecConfig
from .executor.cpp import DEFAULT_COMPILER, DEFAULT_COMPILER_ARGS

# option keys as they appear in the YAML file, per category
_BUILD_AND_RUN_KEYS = {
    "timeout": "timeout_ms",
    "memSample": "mem_sample_ms",
    "charLimit": "char_limit",
    "killGrace": "kill_grace_ms",
    "defaultChecker": "default_checker",
}


class Settings(BaseSettings):
    # ---- buildAndRun ----
    timeout_ms: int = 5000
    mem_sample_ms: int = 500
    char_limit: int = 2_000_000
    kill_grace_ms: int = 200
    default_checker: str = DEFAULT_CHECKER

    # ---- compilerArgs / toolchains, keyed by language tag ----
    compiler_args: Dict[str, str] = Field(default_factory=lambda: {"cpp": DEFAULT_COMPILER_ARGS})
    toolchains: Dict[str, str] = Field(default_factory=lambda: {"cpp": DEFAULT_COMPILER, "py": sys.executable})

    config_file: Path = Path("conf/cprunner.yaml")

    # env prefix CPR_*
    model_config = SettingsConfigDict(env_prefix="CPR_", extra="ignore")

    def get(self, category: str, key: str) -> Any:
        """Look an option up by its (category, key) pair, e.g. ("buildAndRun", "timeout")."""
        if category == "buildAndRun" and key in _BUILD_AND_RUN_KEYS:
            return getattr(self, _BUILD_AND_RUN_KEYS[key])
        if category == "compilerArgs" and key in self.compiler_args:
            return self.compiler_args[key]
        if category == "toolchains" and key in self.toolchains:
            return self.toolchains[key]
        raise KeyError(f"unknown option {category}.{key}")

    def exec_config(self, tag: str, timeout_ms: Optional[int] = None) -> ExecConfig:
        return ExecConfig(
            timeout_ms=timeout_ms if timeout_ms is not None else self.timeout_ms,
            compiler_args=self.compiler_args.get(tag, ""),
            toolchain=self.toolchains.get(tag, ""),
            sample_interval_ms=self.mem_sample_ms,
            kill_grace_ms=self.kill_grace_ms,
        )


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    sec = data.get(name) or {}
    if not isinstance(sec, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return sec


def load_settings(path: Optional[Path] = None) -> Settings:
    # 0) base from CPR_* env
    s = Settings()

    # 1) YAML file (argument, CPR_CONFIG, or the default path)
    cfg = Path(path or os.environ.get("CPR_CONFIG") or s.config_file)
    try:
        with open(cfg, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        data = {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{cfg}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg}: top level must be a mapping")

    update: Dict[str, Any] = {"config_file": cfg}
    bar = _section(data, "buildAndRun")
    for key, field_name in _BUILD_AND_RUN_KEYS.items():
        if key not in bar:
            continue
        conv = str if field_name == "default_checker" else int
        try:
            update[field_name] = conv(bar[key])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{cfg}: buildAndRun.{key}: {e}") from e

    # 2) per-language maps merge over the defaults
    update["compiler_args"] = {**s.compiler_args, **{k: str(v) for k, v in _section(data, "compilerArgs").items()}}
    update["toolchains"] = {**s.toolchains, **{k: str(v) for k, v in _section(data, "toolchains").items()}}

    s = s.model_copy(update=update)
    if s.timeout_ms <= 0:
        raise ConfigError(f"{cfg}: timeout must be positive")
    get_checker(s.default_checker)
    return s
