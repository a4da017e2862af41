from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, Optional
from .types import Type


@dataclass
class Symbol:
    name: str
    type: Type


class SymbolTable:
    """Flat, declaration-ordered name -> type table.

    The checker and the generator each build their own instance while walking
    the tree; nothing is shared between phases.
    """

    def __init__(self):
        self.vars: Dict[str, Symbol] = {}

    def define(self, name: str, type_: Type) -> bool:
        # Returns False (and keeps the first declaration) on redeclaration.
        if name in self.vars:
            return False
        self.vars[name] = Symbol(name, type_)
        return True

    def resolve(self, name: str) -> Optional[Symbol]:
        return self.vars.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.vars

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.vars.values())

    def __len__(self) -> int:
        return len(self.vars)
