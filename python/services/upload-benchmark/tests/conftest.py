"""Pytest fixtures: test client, benchmark log in a temp directory, fake samplers."""
import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app


class FakeMemorySampler:
    """Returns the given readings in order, repeating the last one."""

    def __init__(self, readings):
        self.readings = list(readings)
        self.calls = 0

    def sample(self) -> int:
        value = self.readings[min(self.calls, len(self.readings) - 1)]
        self.calls += 1
        if isinstance(value, Exception):
            raise value
        return value


class FakeConcurrencyCounter:
    def __init__(self, units: int, processors: int):
        self.units = units
        self.processors = processors

    def sample(self) -> int:
        return self.units

    def available_processors(self) -> int:
        return self.processors


@pytest.fixture
def benchmark_log(tmp_path, monkeypatch):
    """Point the service at a fresh benchmark log and a short monitor tick."""
    path = tmp_path / "logs" / "benchmark.txt"
    monkeypatch.setattr(settings, "BENCHMARK_LOG_PATH", str(path))
    monkeypatch.setattr(settings, "MONITOR_INTERVAL_MS", 10)
    return path


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def client(benchmark_log):
    """TestClient; lifespan starts and drains the benchmark log writer."""
    with TestClient(app) as c:
        yield c
