#!/usr/bin/env python3
import io
import os
import sys
import argparse

from bf_errors import BFError
from bf_program import load_file, validate
from bf_runner import Engine, positive_int, setup_logging

DEFAULT_STEP_LIMIT = 2000000


def default_step_limit():
    return int(os.environ.get("BF_STEP_LIMIT", DEFAULT_STEP_LIMIT))


def trace(engine, steps=None, show=50, out=None):
    """
    Step the engine until it finishes or `steps` instructions have run.

    The first `show` steps are printed with the pointer and current cell.
    Returns True if the program ran to the end.
    """
    out = out or sys.stdout
    if steps is None:
        steps = default_step_limit()
    print(f"Loaded {len(engine.sequence)} chars", file=out)

    failed = False
    i = 0
    while i < steps and not engine.finished:
        if i < show:
            print(
                f"Step {i}: IP={engine.instruction_pointer} "
                f"CMD={engine.current_instruction!r} "
                f"PTR={engine.data_pointer} CELL={engine.cell}",
                file=out,
            )

        try:
            engine.step()
        except BFError as e:
            print(f"Error/Halt at step {i}: {e}", file=out)
            failed = True
            break
        i += 1

    if engine.finished:
        print(f"Finished at step {i}", file=out)
    elif not failed:
        print(f"Step limit {steps} reached", file=out)

    print(f"Final IP: {engine.instruction_pointer}", file=out)
    return engine.finished


def main(argv=None):
    parser = argparse.ArgumentParser(description='Trace a tape-language program step by step')
    parser.add_argument('program')
    parser.add_argument('--steps', type=positive_int, default=None,
                        help=f'step budget (default: $BF_STEP_LIMIT or {DEFAULT_STEP_LIMIT})')
    parser.add_argument('--show', type=int, default=50, help='number of steps to print')
    parser.add_argument('--input', help='file supplying bytes for ,')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        sequence = load_file(args.program)
        validate(sequence)
        if args.input:
            with open(args.input, 'rb') as f:
                input_data = f.read()
        else:
            input_data = b''
    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found", file=sys.stderr)
        sys.exit(1)
    except BFError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output = io.BytesIO()
    engine = Engine(sequence, io.BytesIO(input_data), output)
    finished = trace(engine, steps=args.steps, show=args.show)
    print(f"Output: {output.getvalue()!r}")
    if not finished:
        sys.exit(1)


if __name__ == "__main__":
    main()
