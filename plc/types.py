from dataclasses import dataclass
from typing import Dict, Optional

# int is a signed 32-bit value in both the compiler and the VM.
INT_BITS = 32
INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1

@dataclass(frozen=True)
class Type:
    name: str
    tag: str  # one-letter suffix used by typed instructions

    def __str__(self) -> str:
        return self.name

    @property
    def is_numeric(self) -> bool:
        return self in (Int, Float)

Int = Type("int", "I")
Float = Type("float", "F")
Bool = Type("bool", "B")
String = Type("string", "S")
# Sentinel for expressions that already produced a semantic error.
Error = Type("error", "?")

BUILTIN_TYPES: Dict[str, Type] = {
    "int": Int,
    "float": Float,
    "bool": Bool,
    "string": String,
}

TYPES_BY_TAG: Dict[str, Type] = {t.tag: t for t in BUILTIN_TYPES.values()}


def type_from_name(name: str) -> Type:
    if name in BUILTIN_TYPES:
        return BUILTIN_TYPES[name]
    raise KeyError(f"Unknown type '{name}'")


def type_from_tag(tag: str) -> Optional[Type]:
    return TYPES_BY_TAG.get(tag)


def widen(left: Type, right: Type) -> Type:
    """Result type of a numeric binary operator: float wins over int."""
    return Float if Float in (left, right) else Int
