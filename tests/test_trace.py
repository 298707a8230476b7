import io
import unittest

from sisa.arch import *
from sisa.machine import Machine, MachineState
from sisa.trace import VCDTracer


class VCDTracerTestCase(unittest.TestCase):
    def test_dump(self):
        output = io.StringIO()
        with VCDTracer(output) as tracer:
            Machine([MOVI(R0, 5), ADD(R1, R0, R0)], tracer=tracer).run()
        text = output.getvalue()
        self.assertRegex(text, r"\$timescale\s+1\s*ns\s+\$end")
        self.assertRegex(text, r"\$scope module sisa \$end")
        self.assertRegex(text, r"\$scope module regs \$end")
        for name in ["pc", "insn"] + [f"R{index}" for index in range(8)]:
            self.assertRegex(text, rf"\$var wire 16 \S+ {name} \$end")
        self.assertIn("#1", text)
        self.assertIn("#2", text)
        self.assertIn("b101 ", text)
        self.assertIn("b1010 ", text)
        self.assertIn("b1001000000000101 ", text)

    def test_initial_state(self):
        state = MachineState()
        state.registers[3] = -1
        state.pc = 6
        output = io.StringIO()
        tracer = VCDTracer(output, state)
        tracer.close()
        text = output.getvalue()
        self.assertIn("b1111111111111111 ", text)
        self.assertIn("b110 ", text)
