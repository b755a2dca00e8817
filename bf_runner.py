#!/usr/bin/env python3
import sys
import argparse
import logging

from bf_errors import BFError, OutOfRange, StepLimitExceeded, UnmatchedLoop
from bf_io import read_byte, write_byte
from bf_program import (
    PLUS, MINUS, RIGHT, LEFT, PUT_CHAR, READ_CHAR, JUMP_IF_ZERO, JUMP_IF_NOT_ZERO,
    load, load_file, validate,
)

logger = logging.getLogger(__name__)

TAPE_SIZE = 30000


class Engine:
    """
    Executes one instruction sequence against a fresh tape.

    Loops are resolved by scanning for the matching bracket every time a
    jump is taken; no jump table is built.
    """

    def __init__(self, sequence, input_stream, output_stream, tape_size=TAPE_SIZE):
        if tape_size < 1:
            raise ValueError(f"tape_size must be at least 1, got {tape_size}")
        self.sequence = sequence
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.tape_size = tape_size
        self.reset()

    def reset(self):
        self.tape = [0] * self.tape_size
        self.data_pointer = 0
        self.instruction_pointer = 0
        self.step_count = 0

    @property
    def finished(self):
        return self.instruction_pointer >= len(self.sequence)

    @property
    def current_instruction(self):
        if self.finished:
            return None
        return self.sequence[self.instruction_pointer]

    @property
    def cell(self):
        return self.tape[self.data_pointer]

    def step(self):
        if self.finished:
            return False

        op = self.sequence[self.instruction_pointer]

        if op == PLUS:
            self.tape[self.data_pointer] = (self.tape[self.data_pointer] + 1) % 256
        elif op == MINUS:
            self.tape[self.data_pointer] = (self.tape[self.data_pointer] - 1) % 256
        elif op == RIGHT:
            self._move(1)
        elif op == LEFT:
            self._move(-1)
        elif op == PUT_CHAR:
            self._io(write_byte, self.output_stream, self.tape[self.data_pointer])
        elif op == READ_CHAR:
            self.tape[self.data_pointer] = self._io(read_byte, self.input_stream)
        elif op == JUMP_IF_ZERO:
            if self.tape[self.data_pointer] == 0:
                self.instruction_pointer = self._scan(1, JUMP_IF_ZERO, JUMP_IF_NOT_ZERO)
        elif op == JUMP_IF_NOT_ZERO:
            if self.tape[self.data_pointer] != 0:
                self.instruction_pointer = self._scan(-1, JUMP_IF_NOT_ZERO, JUMP_IF_ZERO)

        self.instruction_pointer += 1
        self.step_count += 1
        return True

    def run(self, max_steps=None):
        steps = 0
        while not self.finished:
            if max_steps is not None and steps >= max_steps:
                raise StepLimitExceeded(max_steps, self.instruction_pointer)
            self.step()
            steps += 1
        logger.debug("Finished after %d steps, data pointer at %d", self.step_count, self.data_pointer)
        return self

    def _move(self, delta):
        target = self.data_pointer + delta
        if not 0 <= target < self.tape_size:
            raise OutOfRange(target, self.tape_size, self.instruction_pointer)
        self.data_pointer = target

    def _io(self, func, *args):
        try:
            return func(*args)
        except BFError as e:
            e.instruction_pointer = self.instruction_pointer
            raise

    def _scan(self, direction, same, matching):
        # Lands on the matching bracket; step() then moves one past it.
        start = self.instruction_pointer
        ip = start
        depth = 1
        while depth != 0:
            ip += direction
            if not 0 <= ip < len(self.sequence):
                raise UnmatchedLoop(start)
            op = self.sequence[ip]
            if op == same:
                depth += 1
            elif op == matching:
                depth -= 1
        return ip


def execute(sequence, input_stream, output_stream, tape_size=TAPE_SIZE, max_steps=None):
    engine = Engine(sequence, input_stream, output_stream, tape_size=tape_size)
    return engine.run(max_steps=max_steps)


class FlushingWriter:
    """Wraps a binary stream so every byte is visible as soon as it's written."""

    def __init__(self, stream):
        self.stream = stream

    def write(self, data):
        n = self.stream.write(data)
        self.stream.flush()
        return n


def positive_int(value):
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)5s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_program(path):
    if path == '-':
        return load(sys.stdin.buffer)
    return load_file(path)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run a tape-language program')
    parser.add_argument('program', help='program file, or - to read it from stdin')
    parser.add_argument('--input', help='file supplying bytes for , (default: stdin)')
    parser.add_argument('--no-validate', action='store_true', help='skip the bracket balance check')
    parser.add_argument('--tape-size', type=positive_int, default=TAPE_SIZE, help='number of tape cells')
    parser.add_argument('--max-steps', type=positive_int, default=None, help='abort after this many instructions')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    input_file = None
    try:
        sequence = read_program(args.program)
        if not args.no_validate:
            validate(sequence)

        if args.input:
            input_file = open(args.input, 'rb')
            input_stream = input_file
        else:
            input_stream = sys.stdin.buffer

        execute(
            sequence,
            input_stream,
            FlushingWriter(sys.stdout.buffer),
            tape_size=args.tape_size,
            max_steps=args.max_steps,
        )
    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found", file=sys.stderr)
        sys.exit(1)
    except BFError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        if input_file is not None:
            input_file.close()


if __name__ == "__main__":
    main()
