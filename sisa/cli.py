import re
import os
import sys
import logging
import argparse
import textwrap
import platform

from . import __version__
from .support.logging import *
from .arch.instr import *
from .assembler import Assembler, AssemblerError, format_listing
from .machine import MEMORY_SIZE, Machine, MachineState, LoopbackPorts, load_program
from .trace import VCDTracer


# When running as `-m sisa.cli`, `__name__` is `__main__`, and the real name
# can be retrieved from `__loader__.name`.
logger = logging.getLogger(__loader__.name)


class TextHelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog):
        if "COLUMNS" in os.environ:
            columns = int(os.environ["COLUMNS"])
        else:
            try:
                columns, _ = os.get_terminal_size(sys.stderr.fileno())
            except OSError:
                columns = 80
        super().__init__(prog, width=columns, max_help_position=28)

    def _fill_text(self, text, width, indent):
        paragraphs = textwrap.dedent(text).strip().split("\n\n")
        return "\n\n".join(
            textwrap.fill(paragraph, width, initial_indent=indent, subsequent_indent=indent)
            for paragraph in paragraphs
        )


def version_info():
    python_version = ".".join(map(str, sys.version_info[:3]))
    python_implementation = platform.python_implementation()
    return f"SISA {__version__} ({python_implementation} {python_version})"


def register_assignment(arg):
    match = re.match(r"^R([0-7])=([+-]?(?:0[xX][0-9a-fA-F]+|0[bB][01]+|\d+))$", arg)
    if not match:
        raise argparse.ArgumentTypeError(f"{arg} is not a valid register assignment "
                                         "(should be like R1=-5 or R2=0x7fff)")
    value = int(match[2], 0)
    if not -0x8000 <= value <= 0xffff:
        raise argparse.ArgumentTypeError(f"{match[2]} does not fit into a 16-bit register")
    if value > 0x7fff:
        value -= 0x10000
    return int(match[1]), value


def port_assignment(arg):
    match = re.match(r"^(\d+)=([+-]?(?:0[xX][0-9a-fA-F]+|\d+))$", arg)
    if not match or int(match[1]) not in range(256):
        raise argparse.ArgumentTypeError(f"{arg} is not a valid port assignment "
                                         "(should be like 16=0x1234, with a port 0..255)")
    return int(match[1]), int(match[2], 0) & 0xffff


_address = r"(?:0[xX][0-9a-fA-F]+|\d+)"

def memory_load(arg):
    match = re.match(rf"^({_address})=(.+)$", arg)
    if not match or int(match[1], 0) not in range(MEMORY_SIZE):
        raise argparse.ArgumentTypeError(f"{arg} is not a valid memory load "
                                         "(should be like 0x100=data.bin, with an address "
                                         "0..0xffff)")
    return int(match[1], 0), match[2]


def memory_range(arg):
    match = re.match(rf"^({_address}):({_address})$", arg)
    if not match or not 0 <= int(match[1], 0) <= int(match[2], 0) < MEMORY_SIZE:
        raise argparse.ArgumentTypeError(f"{arg} is not a valid memory range "
                                         "(should be like 0x100:0x11f, inclusive, within "
                                         "0..0xffff)")
    return int(match[1], 0), int(match[2], 0)


def create_argparser():
    parser = argparse.ArgumentParser(prog="sisa", formatter_class=TextHelpFormatter,
                                     description="Assembler and interpreter for the SISA "
                                                 "instruction set.")

    parser.add_argument(
        "-V", "--version", action="version", version=version_info(),
        help="show version and exit")
    parser.add_argument(
        "-v", "--verbose", default=0, action="count",
        help="increase logging verbosity")
    parser.add_argument(
        "-q", "--quiet", default=0, action="count",
        help="decrease logging verbosity")
    parser.add_argument(
        "-L", "--log-file", metavar="FILE", type=argparse.FileType("w"),
        help="save log messages at highest verbosity to FILE")
    parser.add_argument(
        "--no-shorten", default=False, action="store_true",
        help="do not shorten sequences in logs")

    return parser


def get_argparser():
    parser = create_argparser()

    subparsers = parser.add_subparsers(dest="action", metavar="COMMAND")
    subparsers.required = True

    p_assemble = subparsers.add_parser(
        "assemble", formatter_class=TextHelpFormatter,
        help="assemble a source file into a program image",
        description="""
        Assemble SOURCE, one instruction per line, into a little-endian program image.
        Assembly stops at the first line that cannot be translated.
        """)
    p_assemble.add_argument(
        "source", metavar="SOURCE", type=str,
        help="read assembly source from SOURCE")
    p_assemble.add_argument(
        "-o", "--output", metavar="IMAGE", type=str, default=None,
        help="write program image to IMAGE (default: SOURCE with .bin suffix)")
    p_assemble.add_argument(
        "--listing", metavar="FILE", type=argparse.FileType("w"), default=None,
        help="write every instruction word as a line of binary digits to FILE")

    p_run = subparsers.add_parser(
        "run", formatter_class=TextHelpFormatter,
        help="execute a program image",
        description="""
        Execute IMAGE from a zeroed machine state, with optional data loaded into memory, until
        the program counter leaves the program. Then print the port writes, the register file and
        the requested range of data memory.
        """)
    p_run.add_argument(
        "image", metavar="IMAGE", type=argparse.FileType("rb"),
        help="read program image from IMAGE")
    p_run.add_argument(
        "--max-steps", metavar="COUNT", type=int, default=None,
        help="stop after executing COUNT instructions")
    p_run.add_argument(
        "--set", metavar="REG=VALUE", dest="assignments", type=register_assignment,
        action="append", default=[],
        help="set register REG to VALUE before running (e.g. R1=32767)")
    p_run.add_argument(
        "--port", metavar="PORT=VALUE", dest="ports", type=port_assignment,
        action="append", default=[],
        help="make input port PORT read as VALUE")
    p_run.add_argument(
        "--load", metavar="ADDR=FILE", dest="loads", type=memory_load,
        action="append", default=[],
        help="copy the contents of FILE into data memory at ADDR before running")
    p_run.add_argument(
        "--dump", metavar="START:END", type=memory_range, default=None,
        help="print data memory from START to END inclusive after running")
    p_run.add_argument(
        "--vcd", metavar="FILE", type=argparse.FileType("w"), default=None,
        help="write a waveform of the register file to FILE")

    p_disassemble = subparsers.add_parser(
        "disassemble", formatter_class=TextHelpFormatter,
        help="print a program image as assembly",
        description="Print the index, encoding and assembly of every word of IMAGE.")
    p_disassemble.add_argument(
        "image", metavar="IMAGE", type=argparse.FileType("rb"),
        help="read program image from IMAGE")

    return parser


class TerminalFormatter(logging.Formatter):
    DEFAULT_COLORS = {
        "TRACE"   : "\033[0m",
        "DEBUG"   : "\033[36m",
        "INFO"    : "\033[1m",
        "WARNING" : "\033[1;33m",
        "ERROR"   : "\033[1;31m",
        "CRITICAL": "\033[1;41m",
    }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.colors = dict(self.DEFAULT_COLORS)
        for color_override in os.getenv("SISA_COLORS", "").split(":"):
            if color_override:
                level, color = color_override.split("=", 2)
                self.colors[level] = f"\033[{color}m"

    def format(self, record):
        color = self.colors.get(record.levelname, "")
        # sisa.assembler → s.assembler
        record.name = record.name.replace("sisa.", "s.")
        return f"{color}{super().format(record)}\033[0m"


def create_logger():
    root_logger = logging.getLogger()

    term_formatter_args = {"style": "{",
        "fmt": "{levelname[0]:s}: {name:s}: {message:s}"}
    term_handler = logging.StreamHandler()
    if sys.stderr.isatty() and sys.platform != 'win32':
        term_handler.setFormatter(TerminalFormatter(**term_formatter_args))
    else:
        term_handler.setFormatter(logging.Formatter(**term_formatter_args))
    root_logger.addHandler(term_handler)
    return term_handler


def configure_logger(args, term_handler):
    root_logger = logging.getLogger()

    level = logging.INFO + args.quiet * 10 - args.verbose * 10
    if level < 0 or args.no_shorten:
        dump_hex.limit = dump_bin.limit = dump_mapseq.limit = None

    if args.log_file:
        file_formatter_args = {"style": "{",
            "fmt": "[{asctime:s}] {levelname:s}: {name:s}: {message:s}"}
        file_handler = logging.StreamHandler(args.log_file)
        file_handler.setFormatter(logging.Formatter(**file_formatter_args))
        root_logger.addHandler(file_handler)
        term_handler.setLevel(level)
        root_logger.setLevel(logging.TRACE)
    else:
        # Setting the level on the root logger avoids creating a LogRecord for every executed
        # instruction in the first place.
        root_logger.setLevel(level)


def _assemble(args):
    output = args.output
    if output is None:
        output = os.path.splitext(args.source)[0] + ".bin"

    assembler = Assembler()
    try:
        program = assembler.assemble_file(args.source)
    except AssemblerError as e:
        logger.error("assembly of %s stopped at line %d", args.source, e.line)
        return 1

    with open(output, "wb") as f:
        f.write(program)
    if args.listing:
        with args.listing:
            args.listing.write(format_listing(program))

    warnings = sum(1 for diagnostic in assembler.diagnostics
                   if diagnostic.severity == "warning")
    logger.info("assembled %d instructions (%d bytes) to %s, %d warning(s)",
                len(program) // WORD_BYTES, len(program), output, warnings)
    return 0


def _run(args):
    with args.image:
        program = load_program(args.image.read())

    state = MachineState()
    for register, value in args.assignments:
        state.registers[register] = value
    for address, path in args.loads:
        with open(path, "rb") as f:
            data = f.read()
        logger.debug("loading %d bytes from %s at %#06x", len(data), path, address)
        state.memory.load(address, data)
    ports = LoopbackPorts(dict(args.ports))

    tracer = None
    if args.vcd:
        tracer = VCDTracer(args.vcd, state)

    machine = Machine(program, ports=ports, state=state, tracer=tracer)
    try:
        result = machine.run(max_steps=args.max_steps)
    except DecodeError as e:
        logger.error("cannot execute word at PC %#06x: %s", state.pc, e)
        return 1
    finally:
        if tracer is not None:
            tracer.close()
            args.vcd.close()

    if not result.halted:
        logger.warning("step limit reached after %d instructions", result.steps)
    else:
        logger.info("halted after %d instructions", result.steps)

    for port, value in ports.writes:
        print(f"OUT\t{port}\t{value:#06x}")
    print(f"PC\t{state.pc:#06x}")
    for index, value in enumerate(state.registers):
        print(f"R{index}\t{value & 0xffff:#06x}\t{value}")
    if args.dump:
        start, end = args.dump
        data = state.memory.dump(start, end)
        for offset in range(0, len(data), 16):
            print(f"MEM\t{start + offset:#06x}\t{data[offset:offset + 16].hex(' ')}")
    return 0


def _disassemble(args):
    with args.image:
        program = load_program(args.image.read())

    for index, word in enumerate(program):
        try:
            text = disassemble(word)
        except DecodeError as e:
            text = f"; {e}"
        print(f"{index:04x}:\t{format_word(word)}\t{text}")
    return 0


def main(args=None):
    term_handler = create_logger()

    args = get_argparser().parse_args(args)
    configure_logger(args, term_handler)

    try:
        if args.action == "assemble":
            return _assemble(args)
        if args.action == "run":
            return _run(args)
        if args.action == "disassemble":
            return _disassemble(args)

    except (OSError, ValueError) as e:
        logger.error(e)
        return 1

    # User interruption
    except KeyboardInterrupt:
        logger.warning("interrupted")
        return 130 # 128 + SIGINT

    finally:
        logging.getLogger().removeHandler(term_handler)

    return 0


# This entry point is invoked via the `sisa` console script, and when running
# `python -m sisa.cli`.
def run_main():
    exit(main())


if __name__ == "__main__":
    run_main()
