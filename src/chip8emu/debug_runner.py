"""Headless runner for CHIP-8 ROM debugging workflows."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.cpu.cpu import CPUError, Quirks
from chip8emu.cpu.decode import disassemble
from chip8emu.emulator.file import ProgramLoadError
from chip8emu.memory import ADDRESS_MASK, FONT_END, PROGRAM_START, MemorySystem

DEFAULT_MAX_STEPS = 10_000

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_STEP_LIMIT = 2
EXIT_CPU_ERROR = 4


@dataclass(frozen=True)
class DumpRange:
    """Inclusive span of the 12-bit address space."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, address: object) -> bool:
        return isinstance(address, int) and self.start <= address <= self.end

    def adjoins(self, other: DumpRange) -> bool:
        return other.start <= self.end + 1 and self.start <= other.end + 1


MEMORY_REGIONS = {
    "font": DumpRange(0x000, FONT_END - 1),
    "ram": DumpRange(FONT_END, PROGRAM_START - 1),
    "program": DumpRange(PROGRAM_START, ADDRESS_MASK),
}
FULL_RANGE = DumpRange(0x000, ADDRESS_MASK)


def _hex_digits(value: str) -> str:
    text = value.strip().lower()
    return text[2:] if text.startswith("0x") else text


def _parse_hex(value: str) -> int:
    text = _hex_digits(value)
    if not text:
        raise ValueError("empty hexadecimal value")
    address = int(text, 16)
    if not (0 <= address <= ADDRESS_MASK):
        raise ValueError(f"address outside 000-{ADDRESS_MASK:03X}")
    return address


def _parse_range(spec: str) -> DumpRange:
    """Parse ``START:END``, ``START+LENGTH`` or a region name (font, ram, program)."""

    region = MEMORY_REGIONS.get(spec.strip().lower())
    if region is not None:
        return region
    if "+" in spec:
        start_str, _, length_str = spec.partition("+")
        start = _parse_hex(start_str)
        length = int(_hex_digits(length_str) or "0", 16)
        if length <= 0:
            raise ValueError("range length must be positive")
        end = start + length - 1
        if end > ADDRESS_MASK:
            raise ValueError("range runs past the end of memory")
        return DumpRange(start, end)
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("expected START:END, START+LENGTH or a region name")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _parse_key(value: str) -> int:
    text = _hex_digits(value)
    if len(text) != 1:
        raise ValueError("key must be a single hex digit")
    return int(text, 16)


def _merge_ranges(ranges: Sequence[DumpRange], default: DumpRange = FULL_RANGE) -> List[DumpRange]:
    merged: List[DumpRange] = []
    for current in sorted(ranges or [default], key=lambda r: r.start):
        if merged and merged[-1].adjoins(current):
            merged[-1] = DumpRange(merged[-1].start, max(merged[-1].end, current.end))
        else:
            merged.append(current)
    return merged


def _region_name(address: int) -> str:
    for name, region in MEMORY_REGIONS.items():
        if address in region:
            return name
    return ""


def _format_hex_dump(memory: MemorySystem, dump_ranges: Sequence[DumpRange]) -> str:
    """Sixteen bytes per row, addresses outside the range left blank.

    Rows are 16-byte aligned, so each row lies in exactly one of the font,
    ram and program regions; the region is named at the end of the row.
    """

    lines = ["ADR " + " ".join(f"{offset:>2X}" for offset in range(16))]
    for dump_range in dump_ranges:
        if len(lines) > 1:
            lines.append("")
        for base in range(dump_range.start & ~0x0F, dump_range.end + 1, 16):
            row = memory.read_block(base, 16)
            cells = [
                f"{value:02X}" if base + offset in dump_range else "  "
                for offset, value in enumerate(row)
            ]
            lines.append(f"{base:03X} {' '.join(cells)}  {_region_name(base)}")
    return "\n".join(lines)


def _write_dump(
    memory: MemorySystem,
    dump_ranges: Sequence[DumpRange],
    *,
    target: Path | None,
    fmt: str,
) -> None:
    if fmt == "bin":
        data = b"".join(memory.read_block(r.start, len(r)) for r in dump_ranges)
        if target is None:
            sys.stdout.buffer.write(data)
        else:
            target.write_bytes(data)
        return

    text = _format_hex_dump(memory, dump_ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _format_registers(computer: Chip8Computer) -> str:
    regs = computer.cpu_core.registers
    stack = computer.cpu_core.stack
    lines = [
        f"PC:{regs.program_counter:03X} I:{regs.index:03X} "
        f"DT:{computer.timers.delay:02X} ST:{computer.timers.sound:02X} SP:{stack.depth}",
        " ".join(f"V{index:X}:{value:02X}" for index, value in enumerate(regs.v)),
    ]
    if stack.depth:
        lines.append("STACK:" + " ".join(f"{address:03X}" for address in stack.entries()))
    return "\n".join(lines)


def _execute_program(
    computer: Chip8Computer,
    *,
    max_steps: int | None,
    steps_per_frame: int,
    breakpoints: Sequence[int],
) -> Tuple[int, bool, bool]:
    remaining = max_steps
    break_set = {value & ADDRESS_MASK for value in breakpoints}
    break_hit = False
    step_hit = False
    executed_total = 0

    while computer.is_running() and (remaining is None or remaining > 0):
        chunk = steps_per_frame if remaining is None else min(steps_per_frame, remaining)
        executed = 0
        while executed < chunk:
            if not computer.step():
                break
            executed += 1
            pc_value = computer.cpu_core.registers.program_counter & ADDRESS_MASK
            if pc_value in break_set:
                break_hit = True
                break
        executed_total += executed
        if remaining is not None:
            remaining -= executed
        if break_hit or not computer.is_running():
            break
        computer.timers.tick()
        computer.frame_count += 1
        if remaining is not None and remaining <= 0:
            step_hit = True
            break

    return executed_total, break_hit, step_hit


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8-debug-runner",
        description="Headless CHIP-8 runner for ROM diagnostics.",
    )
    parser.add_argument(
        "--rom",
        type=str,
        default=None,
        help=f"Path to the CHIP-8 ROM image (defaults to ${Chip8Computer.ENV_ROM_PATH})",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help="Maximum instructions to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--steps-per-frame",
        type=int,
        default=Chip8Computer.DEFAULT_STEPS_PER_FRAME,
        help="Instructions executed between timer ticks",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Break when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument(
        "--key",
        action="append",
        default=[],
        help="Hold a keypad key (hex digit 0-F) for the whole run (repeatable)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the CXNN random generator")
    parser.add_argument("--strict", action="store_true", help="Report opcodes without a defined meaning")
    parser.add_argument(
        "--vf-no-borrow",
        action="store_true",
        help="8XY5/8XY7 set VF when no borrow occurs",
    )
    parser.add_argument(
        "--memory-increments-index",
        action="store_true",
        help="FX55/FX65 advance I past the stored registers",
    )
    parser.add_argument("--trace", action="store_true", help="Print every executed instruction")
    parser.add_argument(
        "--disassemble",
        action="store_true",
        help="Print a disassembly of the ROM image and exit without running it",
    )
    parser.add_argument("--registers", action="store_true", help="Print registers after the run")
    parser.add_argument("--show-display", action="store_true", help="Print the display buffer after the run")
    parser.add_argument(
        "--dump",
        type=str,
        default=None,
        help="File path for memory dump (without --dump-range the loaded ROM image is dumped)",
    )
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help=(
            "Memory range to dump: START:END (inclusive), START+LENGTH in hex, "
            "or one of font, ram, program. Repeat to add multiple ranges."
        ),
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin"),
        default="hex",
        help="Dump format (hex table or raw binary)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    if args.steps_per_frame <= 0:
        parser.error("steps-per-frame must be positive")

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    keys: List[int] = []
    for spec in args.key:
        try:
            keys.append(_parse_key(spec))
        except ValueError as exc:
            parser.error(f"invalid key '{spec}': {exc}")

    quirks = Quirks(
        vf_no_borrow=args.vf_no_borrow,
        memory_increments_index=args.memory_increments_index,
    )
    try:
        computer = Chip8Computer(args.rom, quirks=quirks, strict=args.strict, seed=args.seed)
    except ProgramLoadError as exc:
        print(f"Failed to load ROM: {exc}", file=sys.stderr)
        return EXIT_LOAD_FAILED
    if computer.program_info is None:
        print("Failed to load ROM: no ROM path given", file=sys.stderr)
        return EXIT_LOAD_FAILED

    if args.disassemble:
        info = computer.program_info
        print("\n".join(disassemble(info.image, info.start)))
        return EXIT_OK

    for key in keys:
        computer.keypad.press(key)
    computer.cpu_core.enable_trace(args.trace)

    step_limit = args.steps if args.steps > 0 else None
    exit_code = EXIT_OK
    try:
        _, break_hit, step_hit = _execute_program(
            computer,
            max_steps=step_limit,
            steps_per_frame=args.steps_per_frame,
            breakpoints=breakpoints,
        )
    except CPUError as exc:
        print(f"Execution halted: {exc}", file=sys.stderr)
        exit_code = EXIT_CPU_ERROR
    else:
        if step_hit and not break_hit:
            print("Execution stopped: step limit reached", file=sys.stderr)
            exit_code = EXIT_STEP_LIMIT

    if args.registers:
        print(_format_registers(computer))
    if args.show_display:
        print(computer.display.render_text())
    if dump_ranges or args.dump is not None:
        dump_target = Path(args.dump) if args.dump is not None else None
        info = computer.program_info
        image_range = DumpRange(info.start, info.end) if info.size else FULL_RANGE
        ranges = _merge_ranges(dump_ranges, default=image_range)
        _write_dump(computer.memory, ranges, target=dump_target, fmt=args.dump_format)

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
