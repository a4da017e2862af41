"""Helpers shared by the test modules."""

from typing import Iterable, List, Optional

from plc.bytecode import Bytecode
from plc.pipeline import compile_source
from plcvm.vm import PLCVM, VMConfig


class Console:
    """Scripted stdin lines plus captured output."""

    def __init__(self, lines: Iterable[str] = ()):
        self._lines: List[str] = list(lines)
        self.output: List[str] = []

    def readline(self) -> Optional[str]:
        if not self._lines:
            return None
        return self._lines.pop(0)

    def write(self, text: str):
        self.output.append(text)

    @property
    def text(self) -> str:
        return "".join(self.output)


def compile_ok(source: str) -> Bytecode:
    result = compile_source(source)
    assert result.ok, [str(e) for e in result.errors]
    return result.code


def execute(code, stdin: Iterable[str] = (), config: Optional[VMConfig] = None):
    """Run bytecode (list or text); returns (vm, printed output)."""
    console = Console(stdin)
    vm = PLCVM(code, console.readline, console.write, config).run()
    return vm, console.text


def run_source(source: str, stdin: Iterable[str] = (), config: Optional[VMConfig] = None) -> str:
    _, out = execute(compile_ok(source), stdin, config)
    return out
