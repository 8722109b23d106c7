"""The MARIA graphics chip: display-list DMA and scanline rendering."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .memory import Memory, Register

SURFACE_SIZE = 93440
LINE_RAM_SIZE = 160

_DMA_MASK = 96
_DMA_ENABLED = 64
_KANGAROO_MODE = 4
_CHARACTER_WIDTH = 16
_READ_MODE_MASK = 3

_NMI_FLAG = 128
_H16_FLAG = 64
_H08_FLAG = 32
_OFFSET_MASK = 15


@dataclass(frozen=True)
class Rect:
    """An inclusive rectangle of pixel columns and scanlines."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1


NTSC_DISPLAY_AREA = Rect(0, 16, 319, 258)
NTSC_VISIBLE_AREA = Rect(0, 26, 319, 248)


def _no_interrupt() -> None:
    return None


class Maria:
    """Renders scanlines from display lists in *memory* into an indexed-colour surface."""

    def __init__(self, memory: Memory, nmi: Callable[[], None] | None = None) -> None:
        self.memory = memory
        self.nmi = nmi if nmi is not None else _no_interrupt
        self.display_area = NTSC_DISPLAY_AREA
        self.visible_area = NTSC_VISIBLE_AREA
        self.surface = bytearray(SURFACE_SIZE)
        self.scanline = 1
        self._line = bytearray(LINE_RAM_SIZE)
        self._cycles = 0
        self._dpp = 0
        self._dp = 0
        self._pp = 0
        self._horizontal = 0
        self._palette = 0
        self._offset = 0
        self._h08 = False
        self._h16 = False
        self._wmode = False

    def reset(self) -> None:
        """Return to the first scanline and blank the surface."""
        self.scanline = 1
        self.clear()

    def clear(self) -> None:
        """Blank the surface."""
        self.surface[:] = bytes(SURFACE_SIZE)

    def _read(self, address: int) -> int:
        return self.memory.peek(address & 0xFFFF)

    def _kangaroo(self) -> bool:
        return bool(self._read(Register.CTRL) & _KANGAROO_MODE)

    def _put(self, value: int | None) -> None:
        """Store a cell at the current position; None means a transparent cell."""
        position = self._horizontal
        if position < LINE_RAM_SIZE:
            if value is not None:
                self._line[position] = value
            elif self._kangaroo():
                self._line[position] = 0
        self._horizontal = (position + 1) & 0xFF

    def _store_cell2(self, data: int) -> None:
        self._put(self._palette | data if data else None)

    def _store_cell(self, high: int, low: int) -> None:
        self._put((self._palette & 16) | high | low if (high or low) else None)

    def _is_holey(self) -> bool:
        pp = self._pp
        if pp > 0x7FFF:
            if self._h16 and pp & 0x1000:
                return True
            if self._h08 and pp & 0x0800:
                return True
        return False

    def _store_graphic(self) -> None:
        data = self._read(self._pp)
        holey = self._is_holey()
        if self._wmode:
            if holey:
                cells = ((0, 0), (0, 0))
            else:
                cells = (
                    (data & 12, (data & 192) >> 6),
                    ((data & 48) >> 4, (data & 3) << 2),
                )
            for high, low in cells:
                self._store_cell(high, low)
        else:
            if holey:
                pixels = (0, 0, 0, 0)
            else:
                pixels = ((data >> 6) & 3, (data >> 4) & 3, (data >> 2) & 3, data & 3)
            for pixel in pixels:
                self._store_cell2(pixel)
        self._pp = (self._pp + 1) & 0xFFFF

    def _color(self, data: int) -> int:
        background = Register.BACKGRND
        return self._read(background + data if data & 3 else background)

    def _write_line(self, row_start: int) -> None:
        width = self.display_area.width
        if row_start < 0 or row_start + 2 * LINE_RAM_SIZE > len(self.surface):
            raise ValueError(
                f"scanline {self.scanline} lies outside the {len(self.surface)}-byte surface"
            )
        rmode = self._read(Register.CTRL) & _READ_MODE_MASK
        color = self._color
        pixels = bytearray()
        if rmode == 0:
            for cell in self._line:
                value = color(cell)
                pixels += bytes((value, value))
        elif rmode == 2:
            for cell in self._line:
                pixels.append(color((cell & 16) | ((cell & 8) >> 3) | (cell & 2)))
                pixels.append(color((cell & 16) | ((cell & 4) >> 2) | ((cell & 1) << 1)))
        elif rmode == 3:
            for cell in self._line:
                pixels.append(color(cell & 30))
                pixels.append(color((cell & 28) | ((cell & 1) << 1)))
        else:
            return
        del width
        self.surface[row_start : row_start + len(pixels)] = pixels

    def _with_high_offset(self, high: int) -> int:
        return (high + self._offset) & 0xFF

    def _store_line(self) -> None:
        read = self._read
        self._line[:] = bytes(LINE_RAM_SIZE)
        mode = read(self._dp + 1)

        while mode & 0x5F:
            dp = self._dp
            self._pp = read(dp) | (read(dp + 2) << 8)
            indirect = False

            if mode & 31:
                self._cycles += 8
                self._palette = (read(dp + 1) & 224) >> 3
                self._horizontal = read(dp + 3)
                width = ((~read(dp + 1)) & 31) + 1
                self._dp = (dp + 4) & 0xFFFF
            else:
                self._cycles += 10
                self._palette = (read(dp + 3) & 224) >> 3
                self._horizontal = read(dp + 4)
                indirect = bool(read(dp + 1) & 32)
                self._wmode = bool(read(dp + 1) & 128)
                raw = read(dp + 3) & 31
                width = 32 if raw == 0 else ((~raw) & 31) + 1
                self._dp = (dp + 5) & 0xFFFF

            if not indirect:
                high = self._with_high_offset(self._pp >> 8)
                self._pp = (self._pp & 0xFF) | (high << 8)
                for _ in range(width):
                    self._cycles += 3
                    self._store_graphic()
            else:
                double_width = bool(read(Register.CTRL) & _CHARACTER_WIDTH)
                base = self._pp
                for _ in range(width):
                    self._cycles += 3
                    low = read(base)
                    base = (base + 1) & 0xFFFF
                    high = self._with_high_offset(read(Register.CHARBASE))
                    self._pp = low | (high << 8)
                    self._cycles += 6
                    self._store_graphic()
                    if double_width:
                        self._cycles += 3
                        self._store_graphic()

            mode = read(self._dp + 1)

    def _load_zone(self) -> None:
        flags = self._read(self._dpp)
        self._h08 = bool(flags & _H08_FLAG)
        self._h16 = bool(flags & _H16_FLAG)
        self._offset = flags & _OFFSET_MASK

    def _zone_requests_nmi(self) -> bool:
        return bool(self._read(self._dpp) & _NMI_FLAG)

    def _load_display_list(self) -> None:
        self._dp = self._read(self._dpp + 2) | (self._read(self._dpp + 1) << 8)

    def render_scanline(self, render: bool = True) -> int:
        """Run DMA for the current scanline and return the cycles it took.

        When *render* is false the display lists are walked for timing only and
        nothing is drawn.
        """
        self._cycles = 0
        display = self.display_area
        visible = self.visible_area
        scanline = self.scanline

        if (self._read(Register.CTRL) & _DMA_MASK) != _DMA_ENABLED:
            return 0
        if not display.top <= scanline <= display.bottom:
            return 0

        self._cycles += 31
        if scanline == display.top:
            self._cycles += 7
            self._dpp = self._read(Register.DPPL) | (self._read(Register.DPPH) << 8)
            self._load_zone()
            self._load_display_list()
            if self._zone_requests_nmi():
                self.nmi()
        elif visible.top <= scanline <= visible.bottom and render:
            self._write_line((scanline - display.top) * display.width)

        if scanline != display.bottom:
            self._load_display_list()
            if render:
                self._store_line()
            self._offset -= 1
            if self._offset < 0:
                self._dpp = (self._dpp + 3) & 0xFFFF
                self._load_zone()
                if self._zone_requests_nmi():
                    self.nmi()

        return self._cycles