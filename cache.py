from dataclasses import dataclass
from enum import Enum
from constants import (
    BLOCK_SIZE_BYTES,
    LOGGER_NAME,
    REPLACEMENT_LRU,
    REPLACEMENT_FIFO,
    WRITE_THROUGH,
    WRITE_BACK,
)
from errors import ConfigError
from instruction import OperationType
import logging

LOGGER = logging.getLogger(LOGGER_NAME)

@dataclass
class MemAddressCacheInfo:
    tag: int
    set_index: int
    offset: int


class ReplacementPolicy(Enum):
    LRU = REPLACEMENT_LRU
    FIFO = REPLACEMENT_FIFO

class WritePolicy(Enum):
    WRITE_THROUGH = WRITE_THROUGH # no write allocate
    WRITE_BACK = WRITE_BACK # write allocate

class AccessResult(Enum):
    HIT = 1
    MISS = 2

@dataclass
class CacheLine:
    valid: bool = False
    dirty: bool = False
    tag: int = 0
    lru_stamp: int = 0 # last use, LRU only
    fifo_stamp: int = 0 # insertion, FIFO only

@dataclass
class CacheSet:
    associativity: int
    index: int
    lines: list[CacheLine]

    def __init__(self, associativity, index):
        self.associativity = associativity
        self.index = index
        self.lines = [CacheLine() for _ in range(associativity)]

    def find_way(self, tag: int) -> int | None:
        for way, line in enumerate(self.lines):
            if line.valid and line.tag == tag:
                return way
        return None

    def select_victim(self, replacement_policy: "ReplacementPolicy") -> int:
        """
        Pick the way to fill on a miss.
        An invalid line is always taken first. Otherwise the line with the
        smallest stamp for the policy loses; on equal stamps the lowest way wins.
        """
        for way, line in enumerate(self.lines):
            if not line.valid:
                return way

        if replacement_policy == ReplacementPolicy.LRU:
            stamps = [line.lru_stamp for line in self.lines]
        else:
            stamps = [line.fifo_stamp for line in self.lines]
        # index() returns the first occurrence, which is the lowest way
        return stamps.index(min(stamps))

    def __str__(self):
        return ",".join(
            (f"{line.tag}{'*' if line.dirty else ''}" if line.valid else "-")
            for line in self.lines
        )

@dataclass
class Cache:
    """
    Set associative cache with 64 byte blocks.
    LRU or FIFO replacement; write-back with write allocate or
    write-through with no write allocate.
    """
    size: int
    associativity: int
    replacement_policy: ReplacementPolicy
    write_policy: WritePolicy
    block_size_bytes: int
    set_count: int
    sets: list[CacheSet]
    global_access_counter: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    mem_reads: int = 0
    mem_writes: int = 0
    read_accesses: int = 0
    write_accesses: int = 0
    evictions: int = 0
    dirty_evictions: int = 0

    def __init__(self, size, associativity, replacement_policy=ReplacementPolicy.LRU, write_policy=WritePolicy.WRITE_BACK):
        if associativity <= 0:
            raise ConfigError(f"Associativity must be at least 1, got {associativity}")
        line_count = size // BLOCK_SIZE_BYTES
        if line_count <= 0:
            raise ConfigError(f"Cache size {size} is smaller than one {BLOCK_SIZE_BYTES} byte block")
        if line_count % associativity != 0:
            raise ConfigError(f"{line_count} lines cannot be split into sets of {associativity}")

        try:
            self.replacement_policy = ReplacementPolicy(replacement_policy)
            self.write_policy = WritePolicy(write_policy)
        except ValueError as e:
            raise ConfigError(str(e)) from e

        self.size = size
        self.associativity = associativity
        self.block_size_bytes = BLOCK_SIZE_BYTES
        self.set_count = line_count // associativity
        self.sets = [CacheSet(self.associativity, i) for i in range(self.set_count)]
        self.global_access_counter = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.mem_reads = 0
        self.mem_writes = 0
        self.read_accesses = 0
        self.write_accesses = 0
        self.evictions = 0
        self.dirty_evictions = 0

    @property
    def is_write_back(self) -> bool:
        return self.write_policy == WritePolicy.WRITE_BACK

    @property
    def total_accesses(self) -> int:
        return self.cache_hits + self.cache_misses

    @property
    def miss_ratio(self) -> float:
        total = self.total_accesses
        if total == 0:
            return 0.0
        return self.cache_misses / total

    def get_info_from_addr(self, mem_addr: int) -> MemAddressCacheInfo:
        block_number = mem_addr // self.block_size_bytes
        return MemAddressCacheInfo(
            tag=block_number // self.set_count,
            set_index=block_number % self.set_count,
            offset=mem_addr % self.block_size_bytes,
        )

    def is_in_cache(self, mem_addr: int) -> bool:
        addr_info = self.get_info_from_addr(mem_addr)
        return self.sets[addr_info.set_index].find_way(addr_info.tag) is not None

    def get_line(self, mem_addr: int) -> CacheLine | None:
        addr_info = self.get_info_from_addr(mem_addr)
        set = self.sets[addr_info.set_index]
        way = set.find_way(addr_info.tag)
        if way is None:
            return None
        return set.lines[way]

    def read(self, mem_addr: int) -> AccessResult:
        return self.access(OperationType.READ, mem_addr)

    def write(self, mem_addr: int) -> AccessResult:
        return self.access(OperationType.WRITE, mem_addr)

    def access(self, operation: OperationType, mem_addr: int) -> AccessResult:
        addr_info = self.get_info_from_addr(mem_addr)
        set = self.sets[addr_info.set_index]
        is_write = operation == OperationType.WRITE
        if is_write:
            self.write_accesses += 1
        else:
            self.read_accesses += 1

        way = set.find_way(addr_info.tag)
        if way is not None:
            self.cache_hits += 1
            self.on_cache_hit(set, way, is_write)
            return AccessResult.HIT

        self.cache_misses += 1
        if is_write and not self.is_write_back:
            # no write allocate: the block never enters the cache
            self.mem_writes += 1
            self.log(f"{operation.name} miss {mem_addr:#x}, written through to memory")
            return AccessResult.MISS

        victim = set.select_victim(self.replacement_policy)
        self.evict_if_needed(set, victim)
        self.mem_reads += 1
        self.fill_line(set, victim, addr_info.tag, make_dirty=is_write)
        self.log(f"{operation.name} miss {mem_addr:#x}, filled set {set.index} way {victim}")
        return AccessResult.MISS

    def on_cache_hit(self, set: CacheSet, way: int, is_write: bool):
        line = set.lines[way]
        if self.replacement_policy == ReplacementPolicy.LRU:
            self.global_access_counter += 1
            line.lru_stamp = self.global_access_counter
        if is_write:
            if self.is_write_back:
                line.dirty = True
            else:
                self.mem_writes += 1
        self.log(f"{'WRITE' if is_write else 'READ'} hit set {set.index} way {way}")

    def evict_if_needed(self, set: CacheSet, way: int):
        line = set.lines[way]
        if not line.valid:
            return
        self.evictions += 1
        if self.is_write_back and line.dirty:
            self.mem_writes += 1
            self.dirty_evictions += 1
            self.log(f"Writing back dirty block with tag {line.tag} from set {set.index} way {way}: [{set}]")

    def fill_line(self, set: CacheSet, way: int, tag: int, make_dirty: bool):
        line = set.lines[way]
        line.valid = True
        line.tag = tag
        line.dirty = make_dirty
        self.global_access_counter += 1
        line.lru_stamp = self.global_access_counter
        line.fifo_stamp = self.global_access_counter

    def log(self, message: str):
        LOGGER.debug("Cache: " + message)
