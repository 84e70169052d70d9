from dataclasses import dataclass
from enum import Enum

class OperationType(Enum):
    READ = "R"
    WRITE = "W"

    @classmethod
    def from_char(cls, char: str) -> "OperationType":
        return cls(char.upper())

@dataclass(frozen=True)
class Instruction:
    type: OperationType
    address: int
