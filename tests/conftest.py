"""Shared fixtures for cputop tests."""
from unittest.mock import MagicMock

import pytest

from cputop.monitor import ProcSample


@pytest.fixture()
def make_sample():
    def _make(name="app", cpu=0.0, memory=0):
        return ProcSample(name=name, cpu=cpu, memory=memory)
    return _make


@pytest.fixture()
def fake_proc():
    """Build a psutil.Process stand-in as yielded by process_iter(attrs=[...])."""
    def _make(name="app", cpu=0.0, rss=0, error=None):
        p = MagicMock()
        p.info = {"name": name}
        p.cpu_percent.return_value = cpu
        p.memory_info.return_value = MagicMock(rss=rss)
        if error is not None:
            p.cpu_percent.side_effect = error
        return p
    return _make
