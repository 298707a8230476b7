from vcd import VCDWriter

from .machine import NUM_REGISTERS


__all__ = ["VCDTracer"]


class VCDTracer:
    """
    Record the execution of a :class:`sisa.machine.Machine` as a value change dump.

    Each executed instruction occupies one nanosecond of simulated time: at time ``n`` the
    ``insn`` variable holds the ``n``-th executed word, and ``pc`` and the register file hold the
    state after it was executed. Pass an instance as the ``tracer`` of a machine, and call
    :meth:`close` once the run is over.
    """

    def __init__(self, file, state=None):
        self._writer = VCDWriter(file, timescale="1 ns", check_values=False)
        self._timestamp = 0

        registers = state.registers if state is not None else [0] * NUM_REGISTERS
        pc        = state.pc if state is not None else 0
        self._pc   = self._writer.register_var(scope="sisa", name="pc", var_type="wire",
                                               size=16, init=pc & 0xffff)
        self._insn = self._writer.register_var(scope="sisa", name="insn", var_type="wire",
                                               size=16, init=0)
        self._registers = [
            self._writer.register_var(scope="sisa.regs", name=f"R{index}", var_type="wire",
                                      size=16, init=value & 0xffff)
            for index, value in enumerate(registers)
        ]

    def on_step(self, steps, report, state):
        self._timestamp = steps
        self._writer.change(self._insn, steps, report.word)
        self._writer.change(self._pc, steps, report.next_pc & 0xffff)
        if report.register is not None:
            self._writer.change(self._registers[report.register], steps,
                                report.new_value & 0xffff)

    def close(self):
        self._writer.close(self._timestamp + 1)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
