import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).parent.parent))

from bf_errors import OutOfRange
from bf_program import load_string
from bf_runner import Engine
import debugger
import trace_execution
from debugger import Debugger
from trace_execution import trace


class TestDebugger(unittest.TestCase):

    def make(self, code, input_data=b''):
        return Debugger(load_string(code), input_data, tape_size=32)

    def test_run_step(self):
        dbg = self.make('+.')
        with redirect_stdout(io.StringIO()):
            self.assertTrue(dbg.run_step())
            self.assertTrue(dbg.run_step())
            self.assertFalse(dbg.run_step())
        self.assertEqual(dbg.output.getvalue(), b'\x01')

    def test_error_stops_stepping(self):
        dbg = self.make('<+')
        buf = io.StringIO()
        with redirect_stdout(buf):
            self.assertFalse(dbg.run_step())
            self.assertFalse(dbg.run_step())
        self.assertIsInstance(dbg.error, OutOfRange)
        self.assertIn("Error at IP 0", buf.getvalue())

    def test_breakpoints(self):
        dbg = self.make('++++.')
        with redirect_stdout(io.StringIO()):
            dbg.toggle_breakpoint(3)
            self.assertTrue(dbg.run_until_break())
            self.assertEqual(dbg.engine.instruction_pointer, 3)
            dbg.toggle_breakpoint(3)
            self.assertFalse(dbg.run_until_break())
        self.assertTrue(dbg.engine.finished)
        self.assertEqual(dbg.output.getvalue(), b'\x04')

    def test_reset(self):
        dbg = self.make(',.', b'q')
        with redirect_stdout(io.StringIO()):
            dbg.run_until_break()
            dbg.reset()
            self.assertEqual(dbg.output.getvalue(), b'')
            dbg.run_until_break()
        self.assertEqual(dbg.output.getvalue(), b'q')

    def test_interactive_session(self):
        dbg = self.make('+++.')
        commands = ['b 2', 'c', 'm 0 2', 'q']
        buf = io.StringIO()
        with mock.patch('builtins.input', side_effect=commands), redirect_stdout(buf):
            dbg.run()
        self.assertEqual(dbg.engine.instruction_pointer, 2)
        self.assertIn("Breakpoint set at 2", buf.getvalue())
        self.assertIn("Breakpoint hit at 2", buf.getvalue())
        self.assertIn("[00000]: 2", buf.getvalue())
        self.assertIn("Execution finished.", buf.getvalue())

    def test_empty_line_repeats_last_command(self):
        dbg = self.make('+++')
        with mock.patch('builtins.input', side_effect=['s', '', '', EOFError]), \
                redirect_stdout(io.StringIO()):
            dbg.run()
        self.assertTrue(dbg.engine.finished)
        self.assertEqual(dbg.engine.tape[0], 3)

    def test_session_stays_open_after_error(self):
        dbg = self.make('+<')
        commands = ['s', 's', 's', 'm 0 1', 'r', 'q']
        buf = io.StringIO()
        with mock.patch('builtins.input', side_effect=commands), redirect_stdout(buf):
            dbg.run()
        self.assertIn("Error at IP 1", buf.getvalue())
        self.assertIn("Halted: data pointer -1", buf.getvalue())
        self.assertIn("[00000]: 1", buf.getvalue())
        self.assertIn("Reset.", buf.getvalue())
        self.assertIsNone(dbg.error)
        self.assertEqual(dbg.engine.tape[0], 0)

    def test_bad_commands(self):
        dbg = self.make('+')
        buf = io.StringIO()
        with mock.patch('builtins.input', side_effect=['b', 'm x', 'zzz', EOFError]), \
                redirect_stdout(buf):
            dbg.run()
        self.assertIn("Usage: b <ip>", buf.getvalue())
        self.assertIn("Usage: m [addr] [count]", buf.getvalue())
        self.assertIn("Unknown command: zzz", buf.getvalue())


class TestTrace(unittest.TestCase):

    def engine(self, code, input_data=b''):
        return Engine(load_string(code), io.BytesIO(input_data), io.BytesIO())

    def test_trace_to_completion(self):
        out = io.StringIO()
        engine = self.engine('++.')
        self.assertTrue(trace(engine, steps=100, out=out))
        self.assertIn("Step 0: IP=0 CMD='+' PTR=0 CELL=0", out.getvalue())
        self.assertIn("Finished at step 3", out.getvalue())
        self.assertEqual(engine.output_stream.getvalue(), b'\x02')

    def test_trace_step_budget(self):
        out = io.StringIO()
        self.assertFalse(trace(self.engine('+[]'), steps=50, show=5, out=out))
        self.assertIn("Step limit 50 reached", out.getvalue())
        self.assertNotIn("Step 5:", out.getvalue())

    def test_trace_error(self):
        out = io.StringIO()
        self.assertFalse(trace(self.engine(','), steps=10, out=out))
        self.assertIn("Error/Halt at step 0", out.getvalue())

    def test_trace_finishes_on_last_budgeted_step(self):
        out = io.StringIO()
        self.assertTrue(trace(self.engine('++.'), steps=3, out=out))
        self.assertIn("Finished at step 3", out.getvalue())
        self.assertNotIn("Step limit", out.getvalue())

    def test_trace_budget_from_environment(self):
        out = io.StringIO()
        with mock.patch.dict(os.environ, {'BF_STEP_LIMIT': '7'}):
            self.assertFalse(trace(self.engine('+[]'), out=out))
        self.assertIn("Step limit 7 reached", out.getvalue())


class CommandLineMixin:

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, data):
        path = Path(self.tmp.name) / name
        path.write_bytes(data)
        return str(path)

    def call_main(self, main, argv, commands=()):
        stdout = io.StringIO()
        stderr = io.StringIO()
        code = 0
        with redirect_stdout(stdout), mock.patch('sys.stderr', stderr), \
                mock.patch('builtins.input', side_effect=list(commands) + [EOFError]):
            try:
                main(argv)
            except SystemExit as e:
                code = e.code
        return code, stdout.getvalue(), stderr.getvalue()


class TestTraceMain(CommandLineMixin, unittest.TestCase):

    def test_finishing_program(self):
        program = self.write('p.bf', b'+' * 65 + b'.')
        code, out, _ = self.call_main(trace_execution.main, [program, '--show', '2'])
        self.assertEqual(code, 0)
        self.assertIn("Finished at step 66", out)
        self.assertIn("Output: b'A'", out)

    def test_reads_input_file(self):
        program = self.write('p.bf', b',.')
        data = self.write('in.bin', b'z')
        code, out, _ = self.call_main(trace_execution.main, [program, '--input', data])
        self.assertEqual(code, 0)
        self.assertIn("Output: b'z'", out)

    def test_budget_exhausted(self):
        program = self.write('p.bf', b'+[]')
        code, out, _ = self.call_main(trace_execution.main, [program, '--steps', '20'])
        self.assertEqual(code, 1)
        self.assertIn("Step limit 20 reached", out)

    def test_budget_from_environment(self):
        program = self.write('p.bf', b'+[]')
        with mock.patch.dict(os.environ, {'BF_STEP_LIMIT': '15'}):
            code, out, _ = self.call_main(trace_execution.main, [program])
        self.assertEqual(code, 1)
        self.assertIn("Step limit 15 reached", out)

    def test_missing_file(self):
        code, _, err = self.call_main(trace_execution.main, [str(Path(self.tmp.name) / 'missing.bf')])
        self.assertEqual(code, 1)
        self.assertIn("not found", err)

    def test_invalid_program(self):
        program = self.write('p.bf', b'][')
        code, _, err = self.call_main(trace_execution.main, [program])
        self.assertEqual(code, 1)
        self.assertIn("] is before [", err)

    def test_zero_step_budget_rejected(self):
        program = self.write('p.bf', b'+')
        code, _, err = self.call_main(trace_execution.main, [program, '--steps', '0'])
        self.assertEqual(code, 2)
        self.assertIn("must be at least 1", err)


class TestDebuggerMain(CommandLineMixin, unittest.TestCase):

    def test_session(self):
        program = self.write('p.bf', b'+++.')
        code, out, _ = self.call_main(debugger.main, [program, '--tape-size', '16'], ['c'])
        self.assertEqual(code, 0)
        self.assertIn("Output: b'\\x03'", out)
        self.assertIn("Execution finished.", out)

    def test_missing_file(self):
        code, _, err = self.call_main(debugger.main, [str(Path(self.tmp.name) / 'missing.bf')])
        self.assertEqual(code, 1)
        self.assertIn("not found", err)

    def test_invalid_program(self):
        program = self.write('p.bf', b'+[')
        code, _, err = self.call_main(debugger.main, [program])
        self.assertEqual(code, 1)
        self.assertIn("Mismatched", err)

    def test_tape_size_zero_rejected(self):
        program = self.write('p.bf', b'+')
        code, _, err = self.call_main(debugger.main, [program, '--tape-size', '0'])
        self.assertEqual(code, 2)
        self.assertIn("must be at least 1", err)


if __name__ == '__main__':
    unittest.main()
