import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .bytecode import serialize
from .pipeline import CompileStage, compile_source
from plcvm.vm import PLCVM, VMConfig, VMError


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def report_errors(title: str, errors: List[Exception]):
    print(title, file=sys.stderr)
    for n, err in enumerate(errors, 1):
        print(f"  {n}. {err}", file=sys.stderr)


def read_source(path: Path) -> Optional[str]:
    """File contents, or None after reporting why the file could not be read."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"{path}: {e.strerror or e}", file=sys.stderr)
        return None


def add_vm_arguments(ap: argparse.ArgumentParser):
    ap.add_argument("--strict", action="store_true",
                    help="Treat unresolved jumps, bad read input and empty pops as runtime errors")
    ap.add_argument("--max-steps", type=int, default=None, metavar="N",
                    help="Abort after executing N instructions")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log phase details to stderr")


def run_bytecode(code, args) -> int:
    config = VMConfig.strict(args.max_steps) if args.strict else VMConfig(max_steps=args.max_steps)
    try:
        PLCVM(code, config=config).run()
    except VMError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        return 2
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="PLC compiler")
    ap.add_argument("source", type=Path, help="Source .plc file")
    ap.add_argument("-o", "--out", type=Path, default=Path("output.asm"), help="Output bytecode file")
    ap.add_argument("--run", action="store_true", help="Run the written bytecode after compiling")
    add_vm_arguments(ap)
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    src_text = read_source(args.source)
    if src_text is None:
        return 1
    result = compile_source(src_text)
    if result.stage is CompileStage.SYNTAX:
        report_errors(f"Syntax errors in {args.source}:", result.syntax_errors)
        return 1
    if result.stage is CompileStage.SEMANTIC:
        report_errors(f"Type errors in {args.source}:", result.semantic_errors)
        return 1

    if args.out.parent != Path(""):
        args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(serialize(result.code), encoding="utf-8")
    logging.getLogger(__name__).debug("wrote %s", args.out)

    if args.run:
        # Execute what was persisted, not the in-memory list.
        return run_bytecode(args.out.read_text(encoding="utf-8"), args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
