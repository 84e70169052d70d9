#!/usr/bin/env python3
"""Sweep cache size, associativity and write policy over one or more traces.

Every configuration gets its own cache; each trace is read once and replayed
into all of them. Results go to one CSV per experiment and trace:

    A: sizes 8KB..128KB, 4-way, LRU, write-back
    B: the same sizes, 4-way, LRU, write-back and write-through
    C: 32KB, associativity 1..64, LRU, write-back
    D: 32KB, associativity 1..64, FIFO, write-back

The parsed trace is held in memory for the whole sweep, one small object per
record. Multi-million record traces need gigabytes; use --quick to replay only
the head of such traces.

Usage:
    cachesim-sweep traces/MINIFE-1.t traces/XSBENCH-1.t
    cachesim-sweep traces/MINIFE-1.t --parts A C --out results
    cachesim-sweep traces/MINIFE-1.t --quick 100000
"""
import argparse
import csv
import logging
import os
import sys
from dataclasses import dataclass
from cache import ReplacementPolicy, WritePolicy
from cachesim import configure_logging
from constants import LOGGER_NAME, SWEEP_CSV_HEADER
from errors import ConfigError, TraceOpenError
from instruction import Instruction
from simulation import Simulation, SimulationResult
from trace_reader import read_trace

LOGGER = logging.getLogger(LOGGER_NAME)

SIZES = [8192, 16384, 32768, 65536, 131072]
ASSOCIATIVITIES = [1, 2, 4, 8, 16, 32, 64]
FIXED_ASSOCIATIVITY = 4
FIXED_SIZE = 32768
PARTS = ["A", "B", "C", "D"]

POLICY_LABELS = {
    ReplacementPolicy.LRU: "LRU",
    ReplacementPolicy.FIFO: "FIFO",
    WritePolicy.WRITE_BACK: "WB",
    WritePolicy.WRITE_THROUGH: "WT",
}

@dataclass(frozen=True)
class SweepConfig:
    size: int
    associativity: int
    replacement_policy: ReplacementPolicy = ReplacementPolicy.LRU
    write_policy: WritePolicy = WritePolicy.WRITE_BACK


def part_configs(part: str) -> list[SweepConfig]:
    match part:
        case "A":
            return [SweepConfig(size, FIXED_ASSOCIATIVITY) for size in SIZES]
        case "B":
            configs = []
            for size in SIZES:
                configs.append(SweepConfig(size, FIXED_ASSOCIATIVITY, write_policy=WritePolicy.WRITE_BACK))
                configs.append(SweepConfig(size, FIXED_ASSOCIATIVITY, write_policy=WritePolicy.WRITE_THROUGH))
            return configs
        case "C":
            return [SweepConfig(FIXED_SIZE, assoc) for assoc in ASSOCIATIVITIES]
        case "D":
            return [SweepConfig(FIXED_SIZE, assoc, replacement_policy=ReplacementPolicy.FIFO) for assoc in ASSOCIATIVITIES]
        case _:
            raise ValueError(f"Unknown sweep part {part!r}")


def run_config(config: SweepConfig, instructions: list[Instruction]) -> SimulationResult | None:
    try:
        simulation = Simulation(config.size, config.associativity, config.replacement_policy, config.write_policy)
    except ConfigError as e:
        LOGGER.warning(f"Skipping {config}: {e}")
        return None
    simulation.replay(instructions)
    return SimulationResult.from_cache(simulation.cache)


def csv_row(trace_name: str, config: SweepConfig, result: SimulationResult) -> list:
    return [
        trace_name,
        config.size,
        config.associativity,
        POLICY_LABELS[config.replacement_policy],
        POLICY_LABELS[config.write_policy],
        f"{result.miss_ratio:f}",
        result.mem_writes,
        result.mem_reads,
    ]


def run_part(part: str, trace_path: str, instructions: list[Instruction], out_dir: str) -> str:
    trace_name = os.path.basename(trace_path)
    stem = os.path.splitext(trace_name)[0]
    path = os.path.join(out_dir, f"part{part}_{stem}.csv")
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(SWEEP_CSV_HEADER)
        for config in part_configs(part):
            LOGGER.info(f"[RUN] trace={trace_name} {config}")
            result = run_config(config, instructions)
            if result is not None:
                writer.writerow(csv_row(trace_name, config, result))
    return path


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("traces", nargs="+", help="Trace files to sweep")
    ap.add_argument("--parts", nargs="+", default=PARTS, choices=PARTS, help="Experiments to run")
    ap.add_argument("--out", default="out", help="Directory for the CSV files (default: out)")
    ap.add_argument("--quick", type=int, default=None, metavar="LINES", help="Only replay the first LINES lines of each trace")
    args = ap.parse_args(argv)

    configure_logging()
    os.makedirs(args.out, exist_ok=True)
    for trace_path in args.traces:
        try:
            instructions = read_trace(trace_path, args.quick)
        except TraceOpenError as e:
            print(e, file=sys.stderr)
            return 1
        LOGGER.info(f"Loaded {len(instructions)} records from {trace_path}")
        for part in args.parts:
            print(run_part(part, trace_path, instructions, args.out))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
