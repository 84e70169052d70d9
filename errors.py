class SimulatorError(Exception):
    """Base class for every error raised by the simulator."""


class UsageError(SimulatorError):
    """Wrong number of command line arguments."""


class ConfigError(SimulatorError):
    """Cache size, associativity or policy selectors cannot form a cache."""


class TraceOpenError(SimulatorError):
    """The trace file could not be opened."""


class TraceFormatError(SimulatorError):
    """A trace record could not be parsed.

    Replay stops at the first such record; nothing after it is replayed.
    """

    def __init__(self, message: str, record_number: int):
        super().__init__(message)
        self.record_number = record_number
