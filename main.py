#!/usr/bin/env python3
"""Brunsviga Command Line Interface.

Run one operation on the Brunsviga 13 RK emulator and show how the
operator performs it.

Usage:
    python main.py --op mul 12 3
    python main.py --op div 100 7 --steps
    python main.py --op sqrt 152399025 --trace
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from brunsviga import Brunsviga
from brunsviga.logging_config import setup_logging


OPERATIONS = {
    "add": ("addition", 2),
    "sub": ("subtraction", 2),
    "mul": ("multiplication", 2),
    "div": ("division", 2),
    "ddiv": ("decimal_division", 2),
    "sqrt": ("square_root", 1),
}


def main():
    parser = argparse.ArgumentParser(
        description="Brunsviga 13 RK: Pinwheel Calculator Emulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Multiply by shift-and-add
    python main.py --op mul 12 3

    # Integer division with the numbered operator steps
    python main.py --op div 100 7 --steps

    # Decimal division to five places (comma or point)
    python main.py --op ddiv 10 4

    # Square root with the register display after every step
    python main.py --op sqrt 152399025 --trace
        """
    )

    parser.add_argument(
        "--op", "-o",
        choices=sorted(OPERATIONS),
        required=True,
        help="Operation to perform"
    )
    parser.add_argument(
        "operands",
        nargs="+",
        help="Operand(s): two for add/sub/mul/div/ddiv, one for sqrt"
    )
    parser.add_argument(
        "--steps", "-s",
        action="store_true",
        help="Print the numbered operator steps"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print the registers after every step"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Minimal output (outcome only)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level. Default: WARNING"
    )

    args = parser.parse_args()

    operation, arity = OPERATIONS[args.op]
    if len(args.operands) != arity:
        parser.error(f"--op {args.op} takes {arity} operand(s), got {len(args.operands)}")

    setup_logging(getattr(logging, args.log_level))

    calculator = Brunsviga()
    result = calculator.run(operation, *args.operands)

    if not result.valid:
        print(f"Error: {result.error}")
        return 1

    if args.steps:
        print(calculator.format_steps())
        print()

    if args.trace:
        print("-" * 60)
        print(calculator.format_registers())
        while calculator.step_forward():
            snap = calculator.snapshot()
            print("-" * 60)
            print(f"[{snap.cursor + 1}/{snap.total_steps}] {snap.description}")
            print(calculator.format_registers())
        print("-" * 60)
    else:
        calculator.run_to_end()

    outcome = ", ".join(f"{key}={value}" for key, value in result.outcome.items()
                        if key != "groups")
    if args.quiet:
        print(outcome)
        return 0

    print()
    print(f"Operation: {result.operation}")
    print(f"Steps: {len(result.steps)}")
    print(f"Outcome: {outcome}")
    print(calculator.format_registers())
    return 0


if __name__ == "__main__":
    sys.exit(main())
