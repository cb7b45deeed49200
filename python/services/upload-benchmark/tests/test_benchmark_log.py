"""Benchmark line format, file sink serialization, queued writer policies."""
import asyncio
import threading
from datetime import datetime, timezone

import pytest

from app.benchmark.writer import BenchmarkLogWriter, BenchmarkSink, FileBenchmarkSink
from app.core.config import QueuePolicy
from app.models.benchmark import BenchmarkResult, format_duration, parse_benchmark_line


def _result(**overrides) -> BenchmarkResult:
    values = dict(
        timestamp=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        file_name="a.bin",
        destination="/tmp/a.bin",
        byte_count=5242880,
        copy_duration_seconds=2.5,
        total_duration_seconds=2.6,
        memory_used_bytes=1048576,
        cpu_usage_percent=12.5,
        concurrency_units=7,
    )
    values.update(overrides)
    return BenchmarkResult(**values)


class RecordingSink(BenchmarkSink):
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.results = []

    def append(self, result: BenchmarkResult) -> bool:
        self.results.append(result)
        return self.ok


def test_format_line():
    assert _result().format_line() == (
        "[2026-01-02T03:04:05Z] File: a.bin, Size: 5242880 bytes, Duration: 2.5s, "
        "Transfer Rate: 2.00 MB/s, Memory Used: 1.00 MB, CPU Usage: 12.50%, Goroutines: 7"
    )


def test_zero_duration_rate_is_finite():
    result = _result(byte_count=1000, copy_duration_seconds=0.0)
    assert result.transfer_rate_bytes_per_second == pytest.approx(1_000_000)
    assert result.duration_ms == 0
    assert _result(byte_count=0, copy_duration_seconds=0.0).transfer_rate_mb_per_second == 0.0


def test_negative_memory_delta_is_kept():
    line = _result(memory_used_bytes=-2 * 1024 * 1024).format_line()
    assert "Memory Used: -2.00 MB" in line
    assert parse_benchmark_line(line)["memory_used_mb"] == -2.0


def test_parse_line_reads_back_fields():
    entry = parse_benchmark_line(_result().format_line() + "\n")
    assert entry["timestamp"] == datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert entry["file_name"] == "a.bin"
    assert entry["byte_count"] == 5242880
    assert entry["duration"] == "2.5s"
    assert entry["concurrency_units"] == 7


def test_parse_line_rejects_partial_entry():
    line = _result().format_line()
    assert parse_benchmark_line(line[: len(line) // 2]) is None
    assert parse_benchmark_line("") is None


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0s"),
        (0.0000005, "500ns"),
        (0.00025, "250µs"),
        (0.0125, "12.5ms"),
        (1.5, "1.5s"),
        (75.5, "1m15.5s"),
        (3600, "1h0m0s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_file_sink_creates_and_appends(tmp_path):
    path = tmp_path / "nested" / "benchmark.txt"
    sink = FileBenchmarkSink(path)

    assert sink.append(_result(file_name="first.bin"))
    assert sink.append(_result(file_name="second.bin"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [parse_benchmark_line(line)["file_name"] for line in lines] == ["first.bin", "second.bin"]


def test_file_sink_concurrent_appends_never_interleave(tmp_path):
    path = tmp_path / "benchmark.txt"
    sink = FileBenchmarkSink(path)

    def worker(n):
        for i in range(50):
            sink.append(_result(file_name=f"worker-{n}-{i}-" + "x" * 200, byte_count=n * 1000 + i))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 400
    entries = [parse_benchmark_line(line) for line in lines]
    assert all(entry is not None for entry in entries)
    assert len({entry["byte_count"] for entry in entries}) == 400


def test_file_sink_failure_is_swallowed(tmp_path):
    # A directory cannot be opened for append
    sink = FileBenchmarkSink(tmp_path)
    assert sink.append(_result()) is False


def test_writer_drains_queue_on_close():
    sink = RecordingSink()
    writer = BenchmarkLogWriter(sink, max_queue_size=10)

    async def run():
        writer.start()
        for i in range(5):
            assert writer.submit(_result(byte_count=i))
        await writer.close()

    asyncio.run(run())

    assert [r.byte_count for r in sink.results] == [0, 1, 2, 3, 4]
    assert writer.written == 5
    assert not writer.running


def test_writer_drop_policy_discards_when_full():
    sink = RecordingSink()
    writer = BenchmarkLogWriter(sink, max_queue_size=1, policy=QueuePolicy.DROP)

    async def run():
        writer.start()
        # The consumer has not run yet, so the first result still fills the queue
        assert writer.submit(_result(byte_count=1)) is True
        assert writer.submit(_result(byte_count=2)) is False
        await writer.close()

    asyncio.run(run())

    assert [r.byte_count for r in sink.results] == [1]
    assert writer.dropped == 1


def test_writer_block_policy_keeps_every_result():
    sink = RecordingSink()
    writer = BenchmarkLogWriter(sink, max_queue_size=2, policy=QueuePolicy.BLOCK)

    async def run():
        writer.start()
        # Two fill the queue, two wait for a free slot
        for i in range(4):
            assert writer.submit(_result(byte_count=i)) is True
        await writer.close()

    asyncio.run(run())

    assert sorted(r.byte_count for r in sink.results) == [0, 1, 2, 3]
    assert writer.dropped == 0


def test_writer_block_policy_bounds_parked_puts():
    sink = RecordingSink()
    writer = BenchmarkLogWriter(sink, max_queue_size=1, policy=QueuePolicy.BLOCK)

    async def run():
        writer.start()
        assert writer.submit(_result(byte_count=1)) is True
        assert writer.submit(_result(byte_count=2)) is True
        # Queue full and one put already parked
        assert writer.submit(_result(byte_count=3)) is False
        await writer.close()

    asyncio.run(run())

    assert sorted(r.byte_count for r in sink.results) == [1, 2]
    assert writer.dropped == 1


def test_writer_counts_sink_failures():
    class ExplodingSink(BenchmarkSink):
        def append(self, result):
            raise RuntimeError("boom")

    failing = BenchmarkLogWriter(RecordingSink(ok=False))
    exploding = BenchmarkLogWriter(ExplodingSink())

    async def run():
        for writer in (failing, exploding):
            writer.start()
            writer.submit(_result())
            await writer.close()

    asyncio.run(run())

    assert failing.failed == 1
    assert exploding.failed == 1


def test_submit_after_close_is_dropped():
    writer = BenchmarkLogWriter(RecordingSink())

    async def run():
        writer.start()
        await writer.close()
        return writer.submit(_result())

    assert asyncio.run(run()) is False
    assert writer.dropped == 1
