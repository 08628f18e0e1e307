"""Text layout helpers for the debugger display.

These functions turn machine state into the strings and cells that the
debugger panel shows: hex numbers, bank:address labels, the register
label column, the stack view and the memory dump.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, NamedTuple

Colour = tuple[int, int, int, int]

COL_BACKGROUND: Colour = (0, 0, 0, 255)
COL_LABEL: Colour = (0, 255, 0, 255)
COL_DATA: Colour = (0, 255, 255, 255)
COL_HIGHLIGHT: Colour = (255, 255, 0, 255)
COL_COMMAND_LINE: Colour = (255, 255, 255, 255)
COL_DIRECT_PAGE: Colour = (192, 224, 255, 255)
COL_VRAM_TILEMAP: Colour = (0, 255, 255, 255)
COL_VRAM_TILEDATA: Colour = (0, 255, 0, 255)
COL_VRAM_SPECIAL: Colour = (255, 92, 92, 255)
COL_VRAM_OTHER: Colour = (128, 128, 128, 255)

DBG_WIDTH = 60
DBG_HEIGHT = 60
DBG_ASMX = 1
DBG_LBLX = 26
DBG_DATX = 30
DBG_STCK = 40
DBG_MEMX = 1
DBG_ZP_REG = 45
DBG_VERA_REGX = 45

_LABELS_65C816 = (
    "NVMXDIZCE", "", "", "A", "B", "C", "X", "Y", "K", "DB", "",
    "PC", "DP", "SP", "BKA", "BKO", "", "BRK", "EFF",
)
_LABELS_65C02 = (
    "NV-BDIZC", "", "", "A", "X", "Y", "", "PC", "SP", "BKA", "BKO",
    "", "BRK", "EFF",
)

_PREFIX_WIDTH = 3


@dataclass(frozen=True)
class TextCell:
    """A piece of text placed at a character cell of the panel."""

    column: int
    row: int
    text: str
    colour: Colour = COL_DATA


class DumpLine(NamedTuple):
    """One row of the memory dump: eight bytes from ``address`` on."""

    address: int
    values: tuple[int, ...]
    direct_page: tuple[bool, ...]


def format_number(n: int, width: int) -> str:
    """Upper-case hex, zero padded to ``width`` digits.

    Negative values show as their 32-bit two's complement.
    """
    if n < 0:
        n &= 0xFFFFFFFF
    return f"{n:0{width}X}"


def format_decimal(n: int, width: int) -> str:
    """Decimal with a space between groups of three digits, right aligned."""
    grouped: list[str] = []
    count = 0
    for ch in reversed(str(n)):
        grouped.append(ch)
        count += 1
        if count == 3:
            grouped.append(" ")
            count = 0
    text = "".join(reversed(grouped))
    if text.startswith(" "):
        text = text[1:]
    return text.rjust(width)


def format_address(x16_bank: int, addr: int, bank: int, gen2: bool = False) -> str:
    """``BB:AAAA`` label; the prefix is the X16 bank in banked memory."""
    if addr >= 0xA000 and bank == 0:
        prefix = f"{x16_bank & 0xFFFFFFFF:02X}:"
    elif gen2:
        prefix = f"{bank & 0xFF:02X} "
    else:
        prefix = "--:"
    return prefix[:_PREFIX_WIDTH] + format_number(addr, 4)


def format_vram_address(addr: int) -> str:
    """Five-digit hex VRAM address."""
    return format_number(addr, 5)


def register_labels(is65c816: bool) -> tuple[str, ...]:
    """Labels of the register column, one per row."""
    return _LABELS_65C816 if is65c816 else _LABELS_65C02


def _next_on_page(address: int) -> int:
    return (address & 0xFF00) | ((address + 1) & 0x00FF)


def stack_lines(sp: int, read: Callable[[int], int], count: int) -> list[TextCell]:
    """Cells for the top ``count`` stack entries above ``sp``.

    The stack pointer wraps within its page. ``read`` takes an address
    and returns the byte stored there.
    """
    cells: list[TextCell] = []
    address = _next_on_page(sp & 0xFFFF)
    for row in range(count):
        cells.append(TextCell(DBG_STCK, row, format_number(address, 4), COL_LABEL))
        cells.append(TextCell(DBG_STCK + 5, row, format_number(read(address) & 0xFF, 2), COL_DATA))
        address = _next_on_page(address)
    return cells


def memory_dump_lines(data: int, rows: int, read: Callable[[int, int], int],
                      direct_page: int) -> list[DumpLine]:
    """Rows of eight bytes starting at the 24-bit address ``data``.

    ``read`` takes a 16-bit address and a bank. A byte is flagged when it
    lies in bank 0 within 256 bytes above ``direct_page``.
    """
    lines: list[DumpLine] = []
    for _ in range(rows):
        bank = data >> 16
        values = tuple(read((data + i) & 0xFFFF, bank) & 0xFF for i in range(8))
        flags = tuple(
            bank == 0 and ((data + i - direct_page) & 0xFFFF) < 256 for i in range(8)
        )
        lines.append(DumpLine(data, values, flags))
        data = (data + 8) & 0xFFFFFF
    return lines


def breakpoint_text(pc: int, bank: int, x16_bank: int, gen2: bool = False) -> str:
    """The breakpoint as shown in the register column."""
    if pc < 0:
        return "--:----"
    if x16_bank < 0:
        if gen2:
            return f"{format_number(bank, 2)} {format_number(pc, 4)}"
        return "--:" + format_number(pc & 0xFFFF, 4)
    return f"{format_number(x16_bank, 2)}:{format_number(pc, 4)}"