import re
import logging
from abc import ABCMeta, abstractmethod
from collections import namedtuple

from .arch.instr import *
from .support.bits import *
from .support.logging import *


__all__ = [
    "AssemblerError", "MalformedTokenError", "UnknownMnemonicError", "ProgramTooLargeError",
    "Diagnostic", "DiagnosticReporter", "LoggingReporter", "Assembler", "format_listing",
    "MAX_PROGRAM_SIZE",
]


logger = logging.getLogger(__name__)


MAX_PROGRAM_SIZE = 5000


class AssemblerError(Exception):
    def __init__(self, message, line=None):
        super().__init__(message)
        self.line = line


class MalformedTokenError(AssemblerError):
    pass


class UnknownMnemonicError(AssemblerError):
    pass


class ProgramTooLargeError(AssemblerError):
    pass


Diagnostic = namedtuple("Diagnostic", ("line", "severity", "message"))


class DiagnosticReporter(metaclass=ABCMeta):
    """
    Receives warnings and errors produced while assembling.

    ``severity`` is either ``"warning"`` or ``"error"``. Errors are reported right before the
    corresponding ``AssemblerError`` is raised.
    """

    @abstractmethod
    def report(self, line, severity, message):
        """Report ``message`` about source line ``line`` (1-based)."""


class LoggingReporter(DiagnosticReporter):
    def __init__(self, logger=logger):
        self._logger = logger

    def report(self, line, severity, message):
        if severity == "warning":
            level = logging.WARNING
        else:
            level = logging.ERROR
        self._logger.log(level, "line %d: %s", line, message)


MemoryOperand = namedtuple("MemoryOperand", ("offset", "base"))

_separators = re.compile(r"[ ,\r\n]+")
_register   = re.compile(r"^R([0-7])$")
_immediate  = re.compile(r"^[+-]?[0-9]+$")
_memory     = re.compile(r"^([+-]?[0-9]*)(.*)$", re.S)

# Range accepted without a warning for each immediate kind. The ADDI immediate also admits the
# unsigned spelling of its upper half, up to 63; memory offsets do not.
_ranges = {
    "imm6": range(-32, 64),
    "off6": range(-32, 32),
    "imm8": range(-128, 128),
}

_widths = {
    "imm6": 6,
    "off6": 6,
    "imm8": 8,
}

_operand_names = {
    "reg":  "register",
    "imm6": "immediate",
    "imm8": "immediate",
    "mem":  "address",
}

_REG3 = ("reg", "reg", "reg")

# Operand syntax in source order, and the function building the word from parsed operands.
_syntax = {
    Mnemonic.IN:     (("reg", "imm8"),        IN),
    Mnemonic.OUT:    (("imm8", "reg"),        OUT),
    Mnemonic.MOVI:   (("reg", "imm8"),        MOVI),
    Mnemonic.MOVHI:  (("reg", "imm8"),        MOVHI),
    Mnemonic.BZ:     (("reg", "imm8"),        BZ),
    Mnemonic.BNZ:    (("reg", "imm8"),        BNZ),
    Mnemonic.ADD:    (_REG3,                  ADD),
    Mnemonic.SUB:    (_REG3,                  SUB),
    Mnemonic.AND:    (_REG3,                  AND),
    Mnemonic.OR:     (_REG3,                  OR),
    Mnemonic.XOR:    (_REG3,                  XOR),
    Mnemonic.NOT:    (("reg", "reg"),         NOT),
    Mnemonic.SHA:    (_REG3,                  SHA),
    Mnemonic.SHL:    (_REG3,                  SHL),
    Mnemonic.CMPLT:  (_REG3,                  CMPLT),
    Mnemonic.CMPLE:  (_REG3,                  CMPLE),
    Mnemonic.CMPEQ:  (_REG3,                  CMPEQ),
    Mnemonic.CMPLTU: (_REG3,                  CMPLTU),
    Mnemonic.CMPLEU: (_REG3,                  CMPLEU),
    Mnemonic.LD:     (("reg", "mem"),         lambda rd, mem: LD(rd, mem.base, mem.offset)),
    Mnemonic.LDB:    (("reg", "mem"),         lambda rd, mem: LDB(rd, mem.base, mem.offset)),
    Mnemonic.ST:     (("mem", "reg"),         lambda mem, rs: ST(rs, mem.base, mem.offset)),
    Mnemonic.STB:    (("mem", "reg"),         lambda mem, rs: STB(rs, mem.base, mem.offset)),
    Mnemonic.JALR:   (("reg", "reg"),         JALR),
    Mnemonic.ADDI:   (("reg", "reg", "imm6"), ADDI),
}


class Assembler:
    """
    A one-pass, line-at-a-time SISA assembler.

    Every call to :meth:`assemble` consumes one source line and appends at most one
    instruction word, little-endian, to the output buffer.

    :type line: int
    :attr line:
        Number of the next source line to be assembled, starting at 1. Every line advances it,
        including blank lines and lines that fail to assemble.

    :type pc: int
    :attr pc:
        Byte offset in the output buffer at which the next word will be written.

    :type diagnostics: list of Diagnostic
    :attr diagnostics:
        Every warning and error reported so far.
    """

    def __init__(self, reporter=None, max_size=MAX_PROGRAM_SIZE):
        self.reporter    = LoggingReporter() if reporter is None else reporter
        self.max_size    = max_size
        self.line        = 1
        self.pc          = 0
        self.diagnostics = []
        self._buffer     = bytearray()

    @property
    def program(self):
        """The bytes emitted so far."""
        return bytes(self._buffer)

    def _report(self, severity, message):
        self.diagnostics.append(Diagnostic(self.line, severity, message))
        self.reporter.report(self.line, severity, message)

    def _warning(self, message):
        self._report("warning", message)

    def _error(self, exc_type, message):
        self._report("error", message)
        return exc_type(message, self.line)

    def _parse_register(self, token):
        match = _register.match(token)
        if not match:
            raise self._error(MalformedTokenError, f"invalid register {token!r}")
        return int(match[1])

    def _parse_immediate(self, mnemonic, kind, token):
        if not _immediate.match(token):
            raise self._error(MalformedTokenError, f"invalid immediate {token!r}")
        value = int(token, 10)
        self._check_range(mnemonic, kind, value)
        return value

    def _parse_memory(self, mnemonic, token):
        offset, rest = _memory.match(token).groups()
        if not rest.startswith("("):
            raise self._error(MalformedTokenError, f"missing '(' in address {token!r}")
        if not rest[1:].startswith("R"):
            raise self._error(MalformedTokenError, f"missing register after '(' in address "
                                                   f"{token!r}")
        if rest[2:3] not in tuple("01234567"):
            raise self._error(MalformedTokenError, f"invalid register in address {token!r}")
        # Anything after the register digit, including the closing parenthesis, is ignored.
        value = int(offset, 10) if offset.lstrip("+-") else 0
        self._check_range(mnemonic, "off6", value)
        return MemoryOperand(offset=value, base=int(rest[2]))

    def _check_range(self, mnemonic, kind, value):
        if value not in _ranges[kind]:
            width = _widths[kind]
            truncated = bits(value, width).to_signed()
            self._warning(f"value {value} passed to {mnemonic.value} does not fit into "
                          f"a {width}-bit signed immediate; truncated to {truncated}")

    def _translate(self, tokens):
        try:
            mnemonic = Mnemonic(tokens[0])
        except ValueError:
            raise self._error(UnknownMnemonicError, f"unknown mnemonic {tokens[0]!r}") from None

        syntax, build = _syntax[mnemonic]
        operands = []
        for index, kind in enumerate(syntax):
            if index + 1 >= len(tokens):
                raise self._error(MalformedTokenError,
                                  f"{mnemonic.value} is missing its {_operand_names[kind]} "
                                  f"operand (operand {index + 1} of {len(syntax)})")
            token = tokens[index + 1]
            if kind == "reg":
                operands.append(self._parse_register(token))
            elif kind == "mem":
                operands.append(self._parse_memory(mnemonic, token))
            else:
                operands.append(self._parse_immediate(mnemonic, kind, token))
        return mnemonic, build(*operands)

    def _emit(self, word):
        if self.pc + WORD_BYTES > self.max_size:
            raise self._error(ProgramTooLargeError,
                              f"program does not fit into {self.max_size} bytes")
        self._buffer[self.pc:self.pc + WORD_BYTES] = word.to_bytes(WORD_BYTES, "little")
        self.pc += WORD_BYTES

    def assemble(self, text):
        """
        Assemble one source line.

        Returns the emitted instruction word, or ``None`` if the line is blank. Raises
        :class:`AssemblerError` if the line cannot be translated; nothing is emitted in that
        case. Out-of-range immediates are reported as warnings and truncated.
        """
        try:
            tokens = [token for token in _separators.split(text) if token]
            if not tokens:
                return None
            mnemonic, word = self._translate(tokens)
            self._emit(word)
            logger.trace("line %d: %s %s -> %s", self.line, mnemonic.value,
                         " ".join(tokens[1:]), dump_bin(word))
            return word
        finally:
            self.line += 1

    def assemble_lines(self, lines):
        """
        Assemble every line of ``lines``, stopping at the first error by propagating it.
        Returns the program assembled so far.
        """
        for text in lines:
            self.assemble(text)
        return self.program

    def assemble_source(self, source):
        return self.assemble_lines(source.splitlines())

    def assemble_file(self, path):
        with open(path, encoding="utf-8") as f:
            return self.assemble_lines(f)


def format_listing(program):
    """
    Render ``program`` as text, one instruction word per line, each as 16 binary digits
    MSB-first.
    """
    if len(program) % WORD_BYTES != 0:
        raise ValueError(f"program length must be a multiple of {WORD_BYTES} bytes, "
                         f"got {len(program)}")
    return "".join(
        "{:016b}\n".format(int.from_bytes(program[offset:offset + WORD_BYTES], "little"))
        for offset in range(0, len(program), WORD_BYTES)
    )
