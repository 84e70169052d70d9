"""
Replay a memory trace through a set associative cache and report memory traffic.
The command line should be
cachesim "cache_size" "associativity" "replacement" "wb" "trace_file"
where
• "cache_size": cache size in bytes
• "associativity": associativity of the cache
• "replacement": 0 for LRU, 1 for FIFO
• "wb": 0 for write-through (no write allocate), 1 for write-back (write allocate)
• "trace_file": trace to replay, "-" (or /dev/stdin) for piped input
Blocks are always 64 bytes. For example, a 32KB 4-way LRU write-back cache over
the first 100k lines of a trace:
head -n 100000 MINIFE-1.t | cachesim 32768 4 0 1 -
Output is three lines: the miss ratio, memory writes and memory reads.
Set CACHESIM_LOG_LEVEL=INFO (or DEBUG) for a log of the run on stderr.
"""
import logging
import os
import sys
from cache import ReplacementPolicy, WritePolicy
from constants import LOG_LEVEL_ENV, LOGGER_NAME
from errors import ConfigError, SimulatorError, UsageError
from simulation import Simulation

LOGGER = logging.getLogger(LOGGER_NAME)

USAGE = "Usage: {prog} <CACHE_SIZE> <ASSOC> <REPLACEMENT> <WB> <TRACE_FILE>"


def log_level_from_env() -> int:
    # getLevelName maps registered names to ints and anything else to a "Level x" string
    level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "WARNING").upper())
    if not isinstance(level, int):
        return logging.WARNING
    return level


def configure_logging():
    logging.basicConfig(level=log_level_from_env())


def _parse_selector(value: str, enum_type, name: str):
    try:
        return enum_type(int(value))
    except ValueError:
        choices = ", ".join(f"{member.value}={member.name}" for member in enum_type)
        raise ConfigError(f"Invalid {name} selector {value!r} (expected {choices}).") from None


def parse_args(argv: list[str]) -> Simulation:
    if len(argv) != 6:
        raise UsageError(USAGE.format(prog=os.path.basename(argv[0]) if argv else "cachesim"))

    try:
        cache_size = int(argv[1])
        associativity = int(argv[2])
    except ValueError:
        raise ConfigError("Invalid cache size or associativity.") from None
    if cache_size <= 0 or associativity <= 0:
        raise ConfigError("Invalid cache size or associativity.")

    replacement = _parse_selector(argv[3], ReplacementPolicy, "replacement")
    write_policy = _parse_selector(argv[4], WritePolicy, "write policy")
    trace_file = argv[5]

    LOGGER.info(
        f"Command arguments: cache size - {cache_size}, associativity - {associativity}, "
        f"replacement - {replacement.name}, write policy - {write_policy.name}, trace file - {trace_file}"
    )
    try:
        return Simulation(cache_size, associativity, replacement, write_policy, trace_file)
    except ConfigError as e:
        raise ConfigError(f"Could not set up cache. {e}") from e


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    if argv is None:
        argv = sys.argv
    try:
        simulation = parse_args(argv)
        result = simulation.simulate()
    except SimulatorError as e:
        print(e, file=sys.stderr)
        return 1
    simulation.print_final_outputs(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
