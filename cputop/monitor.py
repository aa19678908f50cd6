#!/usr/bin/env python3
"""
cputop — top-like process table grouped by process name.

Every refresh the process table is sampled, folded into running per-name
statistics, sorted by average CPU and printed. Names whose average CPU is
below the threshold are hidden. Records are kept for the lifetime of the
monitor, even after the process exits.

Usage:
  cputop [-t THRESHOLD]      # THRESHOLD in percent, 0..100 (default 0.1)
"""
import argparse
import math
import signal
import sys
import threading
from dataclasses import dataclass

try:
    import psutil
except ImportError:
    print("Install dependency first:  pip install psutil", file=sys.stderr)
    sys.exit(1)

DEFAULT_THRESHOLD = 0.1
MIN_THRESHOLD, MAX_THRESHOLD = 0.0, 100.0
REFRESH_INTERVAL = 1.0
CLEAR_SCREEN = "\x1b[2J\x1b[1;1H"
NAME_WIDTH = 45


@dataclass(slots=True)
class ProcSample:
    name: str
    cpu: float
    memory: int  # resident set size, kB


@dataclass(slots=True)
class ProcessRecord:
    name: str
    cpu_usage_sum: float = 0.0
    cpu_usage_latest: float = 0.0
    memory_usage_sum: int = 0
    memory_usage_latest: int = 0
    sample_count: int = 0

    @property
    def avg_cpu(self) -> float:
        return self.cpu_usage_sum / self.sample_count

    @property
    def avg_memory(self) -> int:
        return self.memory_usage_sum // self.sample_count


def get_samples() -> list[ProcSample]:
    """Read name, CPU% and RSS of every live process.

    psutil keeps the Process objects between process_iter() calls, so
    cpu_percent() measures the interval since the previous refresh (the
    first refresh reports 0.0 for every process).
    """
    samples: list[ProcSample] = []
    for p in psutil.process_iter(attrs=["name"]):
        try:
            with p.oneshot():
                name = p.info.get("name") or "?"
                cpu = p.cpu_percent()
                rss_kb = p.memory_info().rss // 1024
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue
        samples.append(ProcSample(name, cpu, rss_kb))
    return samples


def fold(samples, records: dict[str, ProcessRecord]) -> dict[str, ProcessRecord]:
    """Add one refresh worth of samples to the per-name records, in place.

    Sums accumulate, the *_latest fields are overwritten, so when several
    PIDs share a name the last one seen wins.
    """
    for s in samples:
        rec = records.get(s.name)
        if rec is None:
            rec = records[s.name] = ProcessRecord(s.name)
        rec.cpu_usage_sum += s.cpu
        rec.cpu_usage_latest = s.cpu
        rec.memory_usage_sum += s.memory
        rec.memory_usage_latest = s.memory
        rec.sample_count += 1
    return records


def _rank_key(rec: ProcessRecord):
    avg = rec.avg_cpu
    if not math.isfinite(avg):
        return (1, 0.0)
    return (0, -avg)


def rank(records: dict[str, ProcessRecord]) -> list[ProcessRecord]:
    """All records by average CPU, highest first; NaN/inf averages go last."""
    return sorted(records.values(), key=_rank_key)


def format_header() -> str:
    return (
        f"{'NAME':<{NAME_WIDTH}} | {'Avg CPU':<11} | {'CPU':<10}"
        f" | {'Avg RAM':<10} | {'RAM':<20}"
    )


def format_row(rec: ProcessRecord) -> str:
    avg_mem = f"{rec.avg_memory // 1024}M"
    mem = f"{rec.memory_usage_latest // 1024}M"
    return (
        f"{rec.name:<{NAME_WIDTH}} | {rec.avg_cpu:<10.2f}% | {rec.cpu_usage_latest:<10.2f}"
        f" | {avg_mem:<11}| {mem:<20}"
    )


def render(ranked: list[ProcessRecord], threshold: float) -> list[str]:
    lines = [format_header()]
    for rec in ranked:
        if rec.avg_cpu < threshold:
            continue
        lines.append(format_row(rec))
    return lines


def draw(ranked: list[ProcessRecord], threshold: float, out=None) -> None:
    if out is None:
        out = sys.stdout
    out.write(CLEAR_SCREEN)
    for line in render(ranked, threshold):
        out.write(line + "\n")
    out.flush()


def run(
    threshold: float,
    stop: threading.Event | None = None,
    interval: float = REFRESH_INTERVAL,
    sampler=get_samples,
    out=None,
) -> dict[str, ProcessRecord]:
    """Sample, fold, rank and draw every `interval` seconds until `stop` is set.

    Returns the accumulated records.
    """
    if stop is None:
        stop = threading.Event()
    records: dict[str, ProcessRecord] = {}
    while not stop.is_set():
        fold(sampler(), records)
        draw(rank(records), threshold, out)
        stop.wait(interval)
    return records


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="cputop — processes grouped by name, sorted by average CPU")
    ap.add_argument(
        "-t", "--threshold", type=float, default=DEFAULT_THRESHOLD,
        help=f"minimum average CPU usage in %% to show a process (default: {DEFAULT_THRESHOLD})",
    )
    args = ap.parse_args(argv)
    if not (MIN_THRESHOLD <= args.threshold <= MAX_THRESHOLD):
        ap.error("threshold should be between 0 and 100")
    return args


def main(argv=None):
    args = parse_args(argv)
    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())
    try:
        run(args.threshold, stop)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
