#!/usr/bin/env python3
"""
Generate a throughput chart from tests/results.json.

One horizontal bar group per digest/encoding pair, one bar per thread
count, taken from the latest benchmark run of each machine.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

# === Configuration ===

RESULTS_PATH = Path(__file__).resolve().parent.parent / "tests" / "results.json"
OUTPUT_PATH = Path(__file__).resolve().parent.parent / "tests" / "benchmarks.png"

THREAD_COLORS = ["#2563EB", "#F97316", "#16A34A", "#9333EA", "#DC2626", "#0891B2"]

COLORS = {
    "bg": "#F9FAFB",
    "text": "#1A1A1A",
    "text_muted": "#666666",
    "border": "#E5E7EB",
}


# === Data Structures ===


@dataclass
class BenchmarkResult:
    machine: str
    digest: str
    encoding: str
    threads: int
    rate: float

    @property
    def category(self) -> str:
        return f"{self.digest} / {self.encoding}"


# === Data Loading ===


def load_results() -> dict:
    """Load benchmark results from JSON file."""
    if not RESULTS_PATH.exists():
        raise FileNotFoundError(f"Results file not found: {RESULTS_PATH}")
    return json.loads(RESULTS_PATH.read_text())


def latest_entry(entries: list[dict]) -> dict | None:
    latest = None
    for entry in entries:
        ts = entry.get("timestamp")
        if not isinstance(ts, (int, float)):
            continue
        if latest is None or ts > latest["timestamp"]:
            latest = entry
    return latest


def build_benchmark_data(raw_data: dict) -> list[BenchmarkResult]:
    results = []
    for machine, entries in raw_data.items():
        entry = latest_entry(entries)
        if entry is None:
            continue
        for case in entry.get("cases", []):
            rate = case.get("rate")
            if not isinstance(rate, (int, float)) or rate <= 0:
                continue
            results.append(
                BenchmarkResult(
                    machine=machine,
                    digest=case["digest"],
                    encoding=case["encoding"],
                    threads=int(case["threads"]),
                    rate=float(rate),
                )
            )
    return results


# === Plotting ===


def setup_style():
    plt.rcParams.update(
        {
            "font.size": 11,
            "figure.facecolor": COLORS["bg"],
            "axes.facecolor": COLORS["bg"],
            "text.color": COLORS["text"],
            "xtick.color": COLORS["text_muted"],
            "ytick.left": False,
        }
    )


def create_chart(results: list[BenchmarkResult], machine: str) -> plt.Figure:
    rows = [r for r in results if r.machine == machine]
    categories = sorted({r.category for r in rows})
    thread_counts = sorted({r.threads for r in rows})
    if not categories:
        raise ValueError(f"No benchmark data for {machine}")

    lookup = {(r.category, r.threads): r.rate for r in rows}

    fig, ax = plt.subplots(figsize=(10, 1.2 + 0.9 * len(categories)), dpi=200)

    bar_height = 0.8 / len(thread_counts)
    y_base = np.arange(len(categories))[::-1]

    for t_idx, threads in enumerate(thread_counts):
        rates = np.array([lookup.get((c, threads), np.nan) for c in categories])
        y = y_base + (len(thread_counts) - 1 - t_idx) * bar_height - 0.4 + bar_height / 2
        ax.barh(
            y,
            np.nan_to_num(rates / 1e6),
            height=bar_height * 0.9,
            color=THREAD_COLORS[t_idx % len(THREAD_COLORS)],
            alpha=0.92,
            label=f"{threads} thread{'s' if threads != 1 else ''}",
            zorder=3,
        )

    ax.set_yticks(y_base)
    ax.set_yticklabels(categories, fontfamily="monospace", color=COLORS["text_muted"])
    ax.set_xlabel("million hashes / second", color=COLORS["text_muted"])
    ax.grid(axis="x", color=COLORS["border"], linewidth=0.8, zorder=1)
    for spine in ax.spines.values():
        spine.set_visible(False)

    ax.legend(loc="lower right", frameon=False, fontsize=9)
    ax.set_title(f"hash-search throughput on {machine}", fontsize=13, fontweight="bold", loc="left")

    fig.tight_layout()
    return fig


def main():
    setup_style()

    raw_data = load_results()
    results = build_benchmark_data(raw_data)

    if not results:
        raise ValueError("No benchmark data found")

    machine = sorted({r.machine for r in results})[0]
    fig = create_chart(results, machine)
    fig.savefig(OUTPUT_PATH, dpi=200, bbox_inches="tight", facecolor=COLORS["bg"])

    print(f"Chart saved to {OUTPUT_PATH}")
    plt.close(fig)


if __name__ == "__main__":
    main()
