#!/usr/bin/env python3
import io
import sys
import argparse

from bf_errors import BFError
from bf_program import load_file, validate
from bf_runner import Engine, TAPE_SIZE, positive_int, setup_logging

class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    REVERSE = '\033[7m'

class Debugger:
    def __init__(self, sequence, input_data=b'', tape_size=TAPE_SIZE):
        self.sequence = sequence
        self.input_data = input_data
        self.tape_size = tape_size
        self.breakpoints = set()
        self.error = None
        self.reset()

    def reset(self):
        self.output = io.BytesIO()
        self.engine = Engine(
            self.sequence, io.BytesIO(self.input_data), self.output, tape_size=self.tape_size
        )
        self.error = None

    def run_step(self):
        """Execute one instruction. Returns False once halted or failed."""
        if self.error is not None:
            return False
        try:
            return self.engine.step()
        except BFError as e:
            self.error = e
            print(f"{Colors.FAIL}Error at IP {self.engine.instruction_pointer}: {e}{Colors.ENDC}")
            return False

    def run_until_break(self):
        while self.run_step():
            if self.engine.instruction_pointer in self.breakpoints:
                print(f"Breakpoint hit at {self.engine.instruction_pointer}")
                return True
        return False

    def toggle_breakpoint(self, ip):
        if ip in self.breakpoints:
            self.breakpoints.remove(ip)
            print(f"Breakpoint removed at {ip}")
        else:
            self.breakpoints.add(ip)
            print(f"Breakpoint set at {ip}")

    def dump_memory(self, addr, count):
        print("Memory Dump:")
        for i in range(max(0, addr), min(self.tape_size, addr + count)):
            print(f"[{i:05}]: {self.engine.tape[i]}")

    def print_state(self):
        engine = self.engine
        print(f"\n{Colors.BOLD}--- Step {engine.step_count} ---{Colors.ENDC}")
        print(f"IP: {engine.instruction_pointer} / {len(self.sequence)}")
        print(f"Ptr: {engine.data_pointer}")

        window = 8
        start = max(0, engine.data_pointer - window)
        end = min(self.tape_size, engine.data_pointer + window + 1)

        tape_str = ""
        for i in range(start, end):
            val = f"{engine.tape[i]:03}"
            if i == engine.data_pointer:
                tape_str += f"{Colors.REVERSE}[{val}]{Colors.ENDC} "
            else:
                tape_str += f" {val}  "
        print(f"Loc: {tape_str}")

        # Code around the instruction pointer
        context_window = 2
        start_op = max(0, engine.instruction_pointer - context_window)
        end_op = min(len(self.sequence), engine.instruction_pointer + context_window + 1)

        for i in range(start_op, end_op):
            marker = "*" if i in self.breakpoints else " "
            if i == engine.instruction_pointer:
                print(f"{Colors.GREEN}->{marker}{i:04}: {self.sequence[i]!r}{Colors.ENDC}")
            else:
                print(f"  {marker}{i:04}: {self.sequence[i]!r}")

        if self.output.getvalue():
            print(f"Out: {self.output.getvalue()!r}")

        if self.error is not None:
            print(f"{Colors.FAIL}Halted: {self.error} ((m)em dump, (r)eset or (q)uit){Colors.ENDC}")

    def run(self):
        print("Debugger started. Commands: (s)tep, (c)ontinue, (b)reak <ip>, (m)em dump, (r)eset, (q)uit, enter to repeat last")
        last_cmd = 's'
        while not self.engine.finished:
            self.print_state()
            try:
                cmd = input(f"{Colors.BLUE}(bf-dbg){Colors.ENDC} ").strip()
            except EOFError:
                break

            if cmd == '':
                cmd = last_cmd

            last_cmd = cmd

            if cmd.startswith('s'):
                self.run_step()
            elif cmd.startswith('c'):
                self.run_until_break()
            elif cmd.startswith('q'):
                break
            elif cmd.startswith('r'):
                self.reset()
                print("Reset.")
            elif cmd.startswith('m'):
                try:
                    parts = cmd.split()
                    addr = int(parts[1]) if len(parts) > 1 else self.engine.data_pointer
                    count = int(parts[2]) if len(parts) > 2 else 20
                except ValueError:
                    print("Usage: m [addr] [count]")
                    continue
                self.dump_memory(addr, count)
            elif cmd.startswith('b'):
                try:
                    bp = int(cmd.split()[1])
                except (IndexError, ValueError):
                    print("Usage: b <ip>")
                    continue
                self.toggle_breakpoint(bp)
            else:
                print(f"Unknown command: {cmd}")

        print(f"Output: {self.output.getvalue()!r}")
        print("Execution finished.")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Interactive step debugger')
    parser.add_argument('program')
    parser.add_argument('--input', help='file supplying bytes for ,')
    parser.add_argument('--tape-size', type=positive_int, default=TAPE_SIZE)
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        sequence = load_file(args.program)
        validate(sequence)
        input_data = b''
        if args.input:
            with open(args.input, 'rb') as f:
                input_data = f.read()
    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found", file=sys.stderr)
        sys.exit(1)
    except BFError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    dbg = Debugger(sequence, input_data, tape_size=args.tape_size)
    dbg.run()


if __name__ == '__main__':
    main()
