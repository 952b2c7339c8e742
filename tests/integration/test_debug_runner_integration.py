from __future__ import annotations

from pathlib import Path

from chip8emu import debug_runner


def _write_rom(path: Path, payload: bytes) -> Path:
    path.write_bytes(payload)
    return path


def test_debug_runner_breaks_and_dumps(tmp_path, capsys) -> None:
    # V0 = 0x2A; I = 0x300; [I] = V0; loop forever at 0x206.
    rom = _write_rom(tmp_path / "store.ch8", bytes([0x60, 0x2A, 0xA3, 0x00, 0xF0, 0x55, 0x12, 0x06]))

    exit_code = debug_runner.main(
        [
            "--rom",
            str(rom),
            "--steps",
            "100",
            "--break-pc",
            "0x206",
            "--dump-range",
            "0300:030F",
        ]
    )

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_OK
    output_lines = [line for line in captured.out.strip().splitlines() if line]
    assert output_lines[0].startswith("ADR")
    assert output_lines[1].startswith("300 2A 00")
    assert output_lines[1].endswith("program")


def test_debug_runner_step_limit(tmp_path, capsys) -> None:
    rom = _write_rom(tmp_path / "loop.ch8", bytes([0x12, 0x00]))

    exit_code = debug_runner.main(["--rom", str(rom), "--steps", "25", "--registers"])

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_STEP_LIMIT
    assert "step limit" in captured.err
    assert "PC:200" in captured.out


def test_debug_runner_reports_stack_underflow(tmp_path, capsys) -> None:
    rom = _write_rom(tmp_path / "ret.ch8", bytes([0x00, 0xEE]))

    exit_code = debug_runner.main(["--rom", str(rom)])

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_CPU_ERROR
    assert "call stack underflow" in captured.err


def test_debug_runner_rejects_oversized_rom(tmp_path, capsys) -> None:
    rom = _write_rom(tmp_path / "big.ch8", bytes(4000))

    exit_code = debug_runner.main(["--rom", str(rom)])

    assert exit_code == debug_runner.EXIT_LOAD_FAILED
    assert "too large" in capsys.readouterr().err


def test_debug_runner_requires_rom(monkeypatch, capsys) -> None:
    monkeypatch.delenv("CHIP8EMU_ROM", raising=False)

    exit_code = debug_runner.main([])

    assert exit_code == debug_runner.EXIT_LOAD_FAILED
    assert "no ROM path" in capsys.readouterr().err


def test_debug_runner_shows_display_and_trace(tmp_path, capsys) -> None:
    # I = font glyph for V0 (0), draw at (0, 0), then spin.
    rom = _write_rom(tmp_path / "glyph.ch8", bytes([0xF0, 0x29, 0xD0, 0x05, 0x12, 0x04]))

    exit_code = debug_runner.main(
        ["--rom", str(rom), "--steps", "3", "--trace", "--show-display"]
    )

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_STEP_LIMIT
    assert "Opcode : 0xD005" in captured.out
    assert "####" + "." * 60 in captured.out
    assert "#..#" + "." * 60 in captured.out


def test_debug_runner_held_key(tmp_path, capsys) -> None:
    # Wait for key into V3, then spin; dump V3 via FX55 at 0x300.
    rom = _write_rom(
        tmp_path / "key.ch8",
        bytes([0xF3, 0x0A, 0xA3, 0x00, 0xF3, 0x55, 0x12, 0x06]),
    )

    exit_code = debug_runner.main(
        ["--rom", str(rom), "--key", "b", "--break-pc", "206", "--dump-range", "0300:0303"]
    )

    captured = capsys.readouterr()
    assert exit_code == debug_runner.EXIT_OK
    assert "300 00 00 00 0B" in captured.out


def test_debug_runner_disassemble(tmp_path, capsys) -> None:
    rom = _write_rom(tmp_path / "dis.ch8", bytes([0x00, 0xE0, 0x12, 0x00]))

    exit_code = debug_runner.main(["--rom", str(rom), "--disassemble"])

    out = capsys.readouterr().out.splitlines()
    assert exit_code == debug_runner.EXIT_OK
    assert out == ["200 00E0 CLS", "202 1200 JP 0x200"]


def test_debug_runner_binary_dump(tmp_path) -> None:
    rom = _write_rom(tmp_path / "bin.ch8", bytes([0x12, 0x00]))
    target = tmp_path / "dump.bin"

    debug_runner.main(
        [
            "--rom",
            str(rom),
            "--steps",
            "1",
            "--dump",
            str(target),
            "--dump-range",
            "0000:0004",
            "--dump-format",
            "bin",
        ]
    )

    assert target.read_bytes() == bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])
