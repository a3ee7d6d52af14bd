import subprocess
import sys
import time

import psutil

from cprunner.core.models import UsageStats
from cprunner.executor.sampler import ResourceSampler, sample
from conftest import posix_only


def test_samples_live_process():
    proc = subprocess.Popen([sys.executable, "-c", "import time; x = bytearray(8 << 20); time.sleep(0.4)"])
    try:
        with ResourceSampler(proc.pid, interval_ms=20) as s:
            proc.wait()
        stats = s.stop()
    finally:
        proc.kill()
        proc.wait()
    assert s.samples > 0
    assert stats.memory_kb > 0
    assert stats.elapsed_ms >= 300


def test_stop_is_idempotent():
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(0.2)"])
    s = ResourceSampler(proc.pid, interval_ms=20).start()
    proc.wait()
    first = s.stop()
    assert s.stop() is first


def test_vanished_pid_gives_zero_stats():
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()  # reaped, the pid no longer exists
    assert ResourceSampler(proc.pid).start().stop() == UsageStats.zero()


@posix_only
def test_exited_but_unreaped_process_gives_zero_stats():
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    p = psutil.Process(proc.pid)
    deadline = time.monotonic() + 10
    while p.status() != psutil.STATUS_ZOMBIE and time.monotonic() < deadline:
        time.sleep(0.01)
    try:
        assert sample(proc.pid, interval_ms=10) == UsageStats.zero()
    finally:
        proc.wait()


def test_sample_helper_waits_for_exit():
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(0.3)"])
    try:
        stats = sample(proc.pid, interval_ms=20)
    finally:
        proc.wait()
    assert stats.elapsed_ms >= 150
    assert stats.memory_kb > 0
