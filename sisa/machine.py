import logging
from abc import ABCMeta, abstractmethod
from collections import namedtuple

from .arch.instr import *
from .support.lazy import *
from .support.logging import *


__all__ = [
    "NUM_REGISTERS", "MEMORY_SIZE",
    "Memory", "MachineState", "PortInterface", "LoopbackPorts",
    "ExecutionReport", "ExecutionResult", "Machine", "step", "load_program",
]


logger = logging.getLogger(__name__)


NUM_REGISTERS = 8
MEMORY_SIZE   = 1 << 16


def _s16(value):
    value &= 0xffff
    if value & 0x8000:
        value -= 0x10000
    return value

def _u16(value):
    return value & 0xffff


class Memory:
    """
    Byte-addressable data memory of 64 KiB. Cells hold signed bytes; 16-bit accesses are
    little-endian. Every address wraps around modulo 2^16, so no access is out of range.
    """

    def __init__(self):
        self._cells = bytearray(MEMORY_SIZE)

    def read_byte(self, address):
        value = self._cells[_u16(address)]
        if value & 0x80:
            value -= 0x100
        return value

    def write_byte(self, address, value):
        self._cells[_u16(address)] = value & 0xff

    def read_word(self, address):
        low  = self._cells[_u16(address)]
        high = self._cells[_u16(address + 1)]
        return _s16(low | (high << 8))

    def write_word(self, address, value):
        self._cells[_u16(address)]     = value & 0xff
        self._cells[_u16(address + 1)] = (value >> 8) & 0xff

    def load(self, address, data):
        for offset, byte in enumerate(data):
            self._cells[_u16(address + offset)] = byte

    def dump(self, start, end):
        """Return the raw contents of ``start..end`` inclusive."""
        if not 0 <= start <= end < MEMORY_SIZE:
            raise ValueError(f"invalid dump range {start:#06x}..{end:#06x}")
        return bytes(self._cells[start:end + 1])


class MachineState:
    """
    Architectural state of a SISA machine.

    :type registers: list of int
    :attr registers:
        Register file; every value is kept in the signed range ``-32768..32767``.

    :type memory: Memory
    :attr memory:
        Data memory.

    :type pc: int
    :attr pc:
        Index of the next instruction in the instruction stream.
    """

    def __init__(self):
        self.registers = [0] * NUM_REGISTERS
        self.memory    = Memory()
        self.pc        = 0

    def __repr__(self):
        regs = " ".join(f"R{index}={_u16(value):04x}" for index, value in enumerate(self.registers))
        return f"<{self.__class__.__name__} pc={self.pc:04x} {regs}>"


class PortInterface(metaclass=ABCMeta):
    """The I/O port space accessed by ``IN`` and ``OUT``. Port numbers are 0..255."""

    @abstractmethod
    def read(self, port):
        """Return the 16-bit value presented by ``port``."""

    @abstractmethod
    def write(self, port, value):
        """Present the 16-bit ``value`` to ``port``."""


class LoopbackPorts(PortInterface):
    """
    Ports that read back the last value written to them, or the initial value given in
    ``inputs``, or 0. Every write is also recorded in ``writes`` as a ``(port, value)`` tuple.
    """

    def __init__(self, inputs=None):
        self.values = dict(inputs or {})
        self.writes = []

    def read(self, port):
        return self.values.get(port, 0)

    def write(self, port, value):
        self.values[port] = value
        self.writes.append((port, value))


ExecutionReport = namedtuple("ExecutionReport", (
    "pc", "word", "mnemonic", "register", "old_value", "new_value", "next_pc"
))

ExecutionResult = namedtuple("ExecutionResult", ("steps", "halted"))


# Every handler returns ``(register, value, target)``: the register to write (or None), the
# value to write to it, and the new PC if control is transferred (or None).

def _alu(operation):
    def handler(state, fields, ports):
        a = state.registers[fields["areg"]]
        b = state.registers[fields["breg"]]
        return fields["dreg"], _s16(operation(a, b)), None
    return handler

def _effective_address(state, fields):
    return _u16(state.registers[fields["areg"]] + fields["imm6"])

def _addi(state, fields, ports):
    return fields["dbreg"], _s16(state.registers[fields["areg"]] + fields["imm6"]), None

def _ld(state, fields, ports):
    return fields["dbreg"], state.memory.read_word(_effective_address(state, fields)), None

def _ldb(state, fields, ports):
    return fields["dbreg"], state.memory.read_byte(_effective_address(state, fields)), None

def _st(state, fields, ports):
    state.memory.write_word(_effective_address(state, fields),
                            state.registers[fields["dbreg"]])
    return None, None, None

def _stb(state, fields, ports):
    state.memory.write_byte(_effective_address(state, fields),
                            state.registers[fields["dbreg"]])
    return None, None, None

def _jalr(state, fields, ports):
    target = _u16(state.registers[fields["areg"]])
    return fields["dbreg"], _s16(state.pc + 1), target

def _branch(taken):
    def handler(state, fields, ports):
        if taken(state.registers[fields["reg"]]):
            return None, None, _u16(state.pc + fields["imm8"])
        return None, None, None
    return handler

def _movi(state, fields, ports):
    return fields["reg"], fields["imm8"], None

def _movhi(state, fields, ports):
    low = state.registers[fields["reg"]] & 0x00ff
    return fields["reg"], _s16(low | ((fields["imm8"] & 0xff) << 8)), None

def _in(state, fields, ports):
    if ports is None:
        raise ValueError("IN requires a port interface")
    return fields["reg"], _s16(ports.read(fields["imm8"] & 0xff)), None

def _out(state, fields, ports):
    if ports is None:
        raise ValueError("OUT requires a port interface")
    ports.write(fields["imm8"] & 0xff, _u16(state.registers[fields["reg"]]))
    return None, None, None


_handlers = {
    Mnemonic.AND:    _alu(lambda a, b: a & b),
    Mnemonic.OR:     _alu(lambda a, b: a | b),
    Mnemonic.XOR:    _alu(lambda a, b: a ^ b),
    Mnemonic.NOT:    _alu(lambda a, b: ~a),
    Mnemonic.ADD:    _alu(lambda a, b: a + b),
    Mnemonic.SUB:    _alu(lambda a, b: a - b),
    # Shifts multiply by a power of two, so they can only shift left.
    Mnemonic.SHA:    _alu(lambda a, b: a * 2 ** (b & 0xf)),
    Mnemonic.SHL:    _alu(lambda a, b: _u16(a) * 2 ** (b & 0xf)),
    Mnemonic.CMPLT:  _alu(lambda a, b: int(a < b)),
    Mnemonic.CMPLE:  _alu(lambda a, b: int(a <= b)),
    Mnemonic.CMPEQ:  _alu(lambda a, b: int(a == b)),
    Mnemonic.CMPLTU: _alu(lambda a, b: int(_u16(a) < _u16(b))),
    Mnemonic.CMPLEU: _alu(lambda a, b: int(_u16(a) <= _u16(b))),
    Mnemonic.ADDI:   _addi,
    Mnemonic.LD:     _ld,
    Mnemonic.ST:     _st,
    Mnemonic.LDB:    _ldb,
    Mnemonic.STB:    _stb,
    Mnemonic.JALR:   _jalr,
    Mnemonic.BZ:     _branch(lambda value: value == 0),
    Mnemonic.BNZ:    _branch(lambda value: value != 0),
    Mnemonic.MOVI:   _movi,
    Mnemonic.MOVHI:  _movhi,
    Mnemonic.IN:     _in,
    Mnemonic.OUT:    _out,
}


def step(word, state, ports=None):
    """
    Execute the instruction ``word`` against ``state`` and advance its PC.

    Raises :class:`DecodeError` if ``word`` is not a valid instruction; ``state`` is left
    unchanged in that case.
    """
    pc = state.pc
    mnemonic, fields = identify(word)
    register, new_value, target = _handlers[mnemonic](state, fields, ports)

    old_value = None
    if register is not None:
        old_value = state.registers[register]
        state.registers[register] = new_value
        logger.trace("R%d (%#06x -> %#06x): %s (%s) (PC: %#06x)",
                     register, _u16(old_value), _u16(new_value),
                     lazy(lambda: disassemble(word)), lazy(lambda: format_word(word)), pc)
    else:
        logger.trace("%s (%s) (PC: %#06x)",
                     lazy(lambda: disassemble(word)), lazy(lambda: format_word(word)), pc)

    if target is None:
        state.pc = pc + 1
    else:
        state.pc = target
    return ExecutionReport(pc=pc, word=word, mnemonic=mnemonic, register=register,
                           old_value=old_value, new_value=new_value, next_pc=state.pc)


def load_program(data):
    """Split a little-endian program image into 16-bit instruction words."""
    if len(data) % WORD_BYTES != 0:
        raise ValueError(f"program image size must be a multiple of {WORD_BYTES} bytes, "
                         f"got {len(data)}")
    logger.debug("loading program image: <%s>", dump_hex(data))
    return [int.from_bytes(data[offset:offset + WORD_BYTES], "little")
            for offset in range(0, len(data), WORD_BYTES)]


class Machine:
    """
    A SISA interpreter running an instruction stream against its own architectural state.

    The machine halts when the PC leaves the instruction stream. ``tracer``, if given, is called
    as ``tracer.on_step(steps, report, state)`` after every executed instruction.
    """

    def __init__(self, program, ports=None, state=None, tracer=None):
        self.program = list(program)
        self.ports   = LoopbackPorts() if ports is None else ports
        self.state   = MachineState() if state is None else state
        self.tracer  = tracer
        self.steps   = 0

    @property
    def halted(self):
        return self.state.pc not in range(len(self.program))

    def step(self):
        if self.halted:
            raise RuntimeError(f"PC {self.state.pc:#06x} is outside of the program")
        report = step(self.program[self.state.pc], self.state, self.ports)
        self.steps += 1
        if self.tracer is not None:
            self.tracer.on_step(self.steps, report, self.state)
        return report

    def run(self, max_steps=None):
        """
        Execute until the machine halts, or until ``max_steps`` instructions have been executed
        in total. Returns an :class:`ExecutionResult`.
        """
        while not self.halted:
            if max_steps is not None and self.steps >= max_steps:
                logger.debug("stopped after %d steps at PC %#06x", self.steps, self.state.pc)
                return ExecutionResult(steps=self.steps, halted=False)
            self.step()
        logger.debug("halted after %d steps at PC %#06x, registers: %s", self.steps, self.state.pc,
                     dump_mapseq(" ", lambda value: f"{value & 0xffff:04x}", self.state.registers))
        return ExecutionResult(steps=self.steps, halted=True)
