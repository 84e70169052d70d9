from dataclasses import dataclass, field
from typing import Iterable
from cache import Cache, ReplacementPolicy, WritePolicy
from constants import LOGGER_NAME
from instruction import Instruction
from trace_reader import TraceReader
import logging

LOGGER = logging.getLogger(LOGGER_NAME)

@dataclass
class SimulationResult:
    miss_ratio: float
    mem_writes: int
    mem_reads: int
    cache_hits: int
    cache_misses: int
    truncated: bool = False

    @classmethod
    def from_cache(cls, cache: Cache, truncated: bool = False) -> "SimulationResult":
        return cls(
            miss_ratio=cache.miss_ratio,
            mem_writes=cache.mem_writes,
            mem_reads=cache.mem_reads,
            cache_hits=cache.cache_hits,
            cache_misses=cache.cache_misses,
            truncated=truncated,
        )

    def report_lines(self) -> list[str]:
        return [
            f"Miss ratio {self.miss_ratio:f}",
            f"write {self.mem_writes}",
            f"read {self.mem_reads}",
        ]

@dataclass
class Simulation:
    cache_size: int
    associativity: int
    replacement_policy: ReplacementPolicy
    write_policy: WritePolicy
    input_file: str | None = None
    cache: Cache = field(init=False)

    def __post_init__(self):
        # ConfigError surfaces here, before the trace is touched
        self.cache = Cache(self.cache_size, self.associativity, self.replacement_policy, self.write_policy)
        LOGGER.info(
            f"Cache: {self.cache_size} bytes, {self.associativity}-way, {self.cache.set_count} sets, "
            f"{self.cache.replacement_policy.name}, {self.cache.write_policy.name}"
        )

    def replay(self, instructions: Iterable[Instruction]) -> int:
        """Feed every instruction to the cache in order. Returns the number replayed."""
        replayed = 0
        for instr in instructions:
            self.cache.access(instr.type, instr.address)
            replayed += 1
        return replayed

    def simulate(self) -> SimulationResult:
        with TraceReader(self.input_file) as reader:
            replayed = self.replay(reader)
        LOGGER.info(
            f"Replayed {replayed} records from {self.input_file}: "
            f"{self.cache.cache_hits} hits, {self.cache.cache_misses} misses, "
            f"{self.cache.evictions} evictions ({self.cache.dirty_evictions} dirty)"
        )
        return SimulationResult.from_cache(self.cache, truncated=reader.truncated)

    def print_final_outputs(self, result: SimulationResult | None = None):
        if result is None:
            result = SimulationResult.from_cache(self.cache)
        for line in result.report_lines():
            print(line)
