#!/usr/bin/env python3
"""
Upload Benchmark Client

Creates a random test file, uploads it to a running service and prints the
server's telemetry next to the client-side wall time. The server appends the
same run to its benchmark log.

Usage:
    BENCHMARK_SIZE_MB=100 SERVICE_URL=http://localhost:8080 python benchmark_upload.py
"""

import json
import os
import sys
import tempfile
import time

import httpx

CHUNK_SIZE = 1024 * 1024


def create_test_file(size_mb: int) -> str:
    """Write size_mb MiB of random bytes to a temporary file and return its path."""
    fd, path = tempfile.mkstemp(prefix="benchmark_testfile_")
    with os.fdopen(fd, "wb") as f:
        for _ in range(size_mb):
            f.write(os.urandom(CHUNK_SIZE))
    return path


def main():
    service_url = os.environ.get("SERVICE_URL", "http://localhost:8080")
    size_mb = int(sys.argv[1]) if len(sys.argv) > 1 else int(os.environ.get("BENCHMARK_SIZE_MB", "100"))
    dest = os.environ.get("BENCHMARK_DEST", f"/tmp/benchmark_{size_mb}mb.dat")

    print(f"Creating test file of {size_mb}MB...", flush=True)
    path = create_test_file(size_mb)

    try:
        print(f"Uploading to {service_url}/upload?dest={dest}", flush=True)
        start = time.perf_counter()
        with open(path, "rb") as f, httpx.Client(timeout=httpx.Timeout(30.0, read=None)) as client:
            response = client.post(
                f"{service_url}/upload",
                params={"dest": dest},
                files={"file": (os.path.basename(path), f, "application/octet-stream")},
            )
        elapsed = time.perf_counter() - start

        print(json.dumps(response.json(), indent=2))
        print(f"Client wall time: {elapsed:.3f}s ({size_mb / elapsed:.2f} MB/s end-to-end)")

        if response.status_code != 200:
            sys.exit(1)

    except httpx.HTTPError as e:
        print(f"Benchmark request failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        os.remove(path)


if __name__ == "__main__":
    main()
