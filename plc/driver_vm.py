import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .bytecode import BytecodeError, parse
from .driver import add_vm_arguments, configure_logging, read_source, report_errors, run_bytecode
from .pipeline import CompileStage, compile_source

BYTECODE_SUFFIXES = {".asm", ".plcb"}


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="PLC VM executor")
    ap.add_argument("file", type=Path, help="Source .plc file, or compiled .asm bytecode")
    add_vm_arguments(ap)
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    text = read_source(args.file)
    if text is None:
        return 1

    if args.file.suffix in BYTECODE_SUFFIXES:
        try:
            code = parse(text)
        except BytecodeError as e:
            print(f"{args.file}: {e}", file=sys.stderr)
            return 1
        return run_bytecode(code, args)

    result = compile_source(text)
    if result.stage is CompileStage.SYNTAX:
        report_errors(f"Syntax errors in {args.file}:", result.syntax_errors)
        return 1
    if result.stage is CompileStage.SEMANTIC:
        report_errors(f"Type errors in {args.file}:", result.semantic_errors)
        return 1
    return run_bytecode(result.code, args)


if __name__ == "__main__":
    sys.exit(main())
