"""
Model constants.
Every block in the cache is 64 bytes; the block size is not configurable.
Replacement selector: 0 = LRU, 1 = FIFO.
Write policy selector: 0 = write-through (no write allocate),
1 = write-back (write allocate).
"""
BLOCK_SIZE_BYTES = 64

REPLACEMENT_LRU = 0
REPLACEMENT_FIFO = 1

WRITE_THROUGH = 0
WRITE_BACK = 1

LOGGER_NAME = "cachesim"
LOG_LEVEL_ENV = "CACHESIM_LOG_LEVEL"

SWEEP_CSV_HEADER = [
    "trace",
    "size_bytes",
    "assoc",
    "replacement",
    "wb",
    "miss_ratio",
    "mem_writes",
    "mem_reads",
]
