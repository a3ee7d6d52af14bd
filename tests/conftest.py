from __future__ import annotations
import shutil
import sys
import textwrap
from pathlib import Path

import pytest

from cprunner.core.models import ExecConfig
from cprunner.settings import Settings

HAS_GXX = shutil.which("g++") is not None
needs_gxx = pytest.mark.skipif(not HAS_GXX, reason="g++ not installed")
posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")

ECHO_PY = "import sys\nsys.stdout.write(sys.stdin.read())\n"
LOOP_PY = "while True:\n    pass\n"

ECHO_CPP = textwrap.dedent("""
    #include <iostream>
    int main() {
        int n;
        std::cin >> n;
        std::cout << n << "\\n";
        return 0;
    }
""")


@pytest.fixture
def write_src(tmp_path):
    def _write(name: str, code: str) -> Path:
        p = tmp_path / name
        p.write_text(code, encoding="utf-8")
        return p
    return _write


@pytest.fixture
def fast_config() -> ExecConfig:
    return ExecConfig(timeout_ms=5000, sample_interval_ms=20, toolchain=sys.executable)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        timeout_ms=5000,
        mem_sample_ms=20,
        config_file=tmp_path / "missing.yaml",
    )
