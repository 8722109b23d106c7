"""Cartridge images: header parsing, identification and bank switching."""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol

from .hashing import compute_digest
from .memory import Memory

HEADER_SIZE = 128
BANK_SIZE = 0x4000

_HEADER_ID = b"ATARI7800"
_CC2_ID = b">>"
_SMALL_SUPERCART_LIMIT = 65536
_LARGE_SUPERCART_THRESHOLD = 131072

_POKEY_FIRST = 0x4000
_POKEY_LAST = 0x4008

# Bank switching region used by the SuperCart family.
_SUPERCART_WINDOW = range(0x8000, 0xC000)
_ABSOLUTE_SWITCH = 0x8000
_ACTIVISION_SWITCH = 0xFF80


class CartridgeType(IntEnum):
    """Bank switching schemes."""

    NORMAL = 0
    SUPERCART = 1
    SUPERCART_LARGE = 2
    SUPERCART_RAM = 3
    SUPERCART_ROM = 4
    ABSOLUTE = 5
    ACTIVISION = 6


class Controller(IntEnum):
    """Controller kinds named in a cartridge header."""

    NONE = 0
    JOYSTICK = 1
    LIGHTGUN = 2


WSYNC_MASK = 2
CYCLE_STEALING_MASK = 1

_SUPERCARTS = frozenset(
    {CartridgeType.SUPERCART, CartridgeType.SUPERCART_RAM, CartridgeType.SUPERCART_ROM}
)
_BANK_WINDOW = {
    CartridgeType.SUPERCART: 0x8000,
    CartridgeType.SUPERCART_RAM: 0x8000,
    CartridgeType.SUPERCART_ROM: 0x8000,
    CartridgeType.SUPERCART_LARGE: 0x8000,
    CartridgeType.ABSOLUTE: 0x4000,
    CartridgeType.ACTIVISION: 0xA000,
}


class PokeyPort(Protocol):
    """What a cartridge needs from an on-board POKEY chip."""

    def set_register(self, address: int, value: int) -> None: ...


def _supercart_type(header: bytes, declared_size: int) -> CartridgeType:
    if declared_size > _LARGE_SUPERCART_THRESHOLD:
        return CartridgeType.SUPERCART_LARGE
    kind = header[54]
    if kind in (2, 3):
        return CartridgeType.SUPERCART
    if kind in (4, 5, 6, 7):
        return CartridgeType.SUPERCART_RAM
    if kind in (8, 9, 10, 11):
        return CartridgeType.SUPERCART_ROM
    return CartridgeType.NORMAL


class Cartridge:
    """A loaded ROM image and the state of its bank switching hardware."""

    def __init__(self, pokey: PokeyPort | None = None) -> None:
        self.pokey = pokey
        self.digest = ""
        self.type = CartridgeType.NORMAL
        self.region = 0
        self.has_pokey = False
        self.controllers: tuple[int, int] = (0, 0)
        self.bank = 0
        self.flags = 0
        self._rom: bytes | None = None

    @property
    def loaded(self) -> bool:
        return self._rom is not None

    @property
    def size(self) -> int:
        return 0 if self._rom is None else len(self._rom)

    def _read_header(self, header: bytes) -> None:
        declared_size = int.from_bytes(header[49:53], "big")
        if header[53] == 0:
            self.type = _supercart_type(header, declared_size)
        elif header[53] == 1:
            self.type = CartridgeType.ABSOLUTE
        elif header[53] == 2:
            self.type = CartridgeType.ACTIVISION
        else:
            self.type = CartridgeType.NORMAL
        self.has_pokey = bool(header[54] & 1)
        self.controllers = (header[55], header[56])
        self.region = header[57]
        self.flags = 0

    def load(self, data: bytes | bytearray | memoryview) -> None:
        """Load a ROM image, parsing its header when it has one.

        Images without a header keep the settings already in place.
        """
        data = bytes(data)
        if len(data) <= HEADER_SIZE:
            raise ValueError(
                f"cartridge image of {len(data)} bytes is too short to be valid"
            )
        self.release()
        header = data[:HEADER_SIZE]
        if header[1:3] == _CC2_ID:
            raise ValueError("CC2 cartridge images are not supported")
        if header[1:10] == _HEADER_ID:
            self._read_header(header)
            data = data[HEADER_SIZE:]
        self._rom = data
        self.digest = compute_digest(data)

    def _require_rom(self) -> bytes:
        if self._rom is None:
            raise RuntimeError("no cartridge is loaded")
        return self._rom

    def _bank_offset(self, bank: int) -> int:
        if (
            self.type in _SUPERCARTS
            and self.size <= _SMALL_SUPERCART_LIMIT
        ):
            # Small SuperCarts have four banks; bit 2 of the bank number is ignored.
            return (bank & 3) * BANK_SIZE
        return bank * BANK_SIZE

    def _slice(self, offset: int, length: int) -> memoryview:
        return memoryview(self._require_rom())[offset : offset + length]

    def _write_bank(self, memory: Memory, address: int, bank: int) -> None:
        offset = self._bank_offset(bank)
        if offset < self.size:
            memory.write_rom(address, self._slice(offset, BANK_SIZE))
            self.bank = bank

    def store(self, memory: Memory) -> None:
        """Map the cartridge's power-on banks into *memory*."""
        rom = self._require_rom()
        size = len(rom)
        kind = self.type
        if kind == CartridgeType.NORMAL:
            memory.write_rom(0x10000 - size, memoryview(rom))
            if size == BANK_SIZE:
                memory.write_rom(0x4000, memoryview(rom))
                memory.write_rom(0x8000, memoryview(rom))
        elif kind == CartridgeType.SUPERCART:
            if self._bank_offset(7) < size:
                memory.write_rom(0xC000, self._slice(self._bank_offset(7), BANK_SIZE))
        elif kind == CartridgeType.SUPERCART_LARGE:
            if self._bank_offset(8) < size:
                memory.write_rom(0xC000, self._slice(self._bank_offset(8), BANK_SIZE))
                memory.write_rom(0x4000, self._slice(self._bank_offset(0), BANK_SIZE))
        elif kind == CartridgeType.SUPERCART_RAM:
            if self._bank_offset(7) < size:
                memory.write_rom(0xC000, self._slice(self._bank_offset(7), BANK_SIZE))
                memory.clear_rom(0x4000, BANK_SIZE)
        elif kind == CartridgeType.SUPERCART_ROM:
            if self._bank_offset(7) < size and self._bank_offset(6) < size:
                memory.write_rom(0xC000, self._slice(self._bank_offset(7), BANK_SIZE))
                memory.write_rom(0x4000, self._slice(self._bank_offset(6), BANK_SIZE))
        elif kind == CartridgeType.ABSOLUTE:
            memory.write_rom(0x4000, self._slice(0, BANK_SIZE))
            memory.write_rom(0x8000, self._slice(self._bank_offset(2), 2 * BANK_SIZE))
        elif kind == CartridgeType.ACTIVISION:
            if size > 122880:
                memory.write_rom(0xA000, self._slice(0, 16384))
                memory.write_rom(0x4000, self._slice(106496, 8192))
                memory.write_rom(0x6000, self._slice(98304, 8192))
                memory.write_rom(0x8000, self._slice(122880, 8192))
                memory.write_rom(0xE000, self._slice(114688, 8192))

    def store_bank(self, memory: Memory, bank: int) -> None:
        """Switch *bank* into the cartridge's bank window."""
        window = _BANK_WINDOW.get(self.type)
        if window is not None:
            self._write_bank(memory, window, bank & 0xFF)

    def write(self, memory: Memory, address: int, data: int) -> None:
        """Handle a CPU write to cartridge space: bank switches and POKEY registers."""
        kind = self.type
        if kind in _SUPERCARTS:
            if address in _SUPERCART_WINDOW and data < 9:
                self.store_bank(memory, data)
        elif kind == CartridgeType.SUPERCART_LARGE:
            if address in _SUPERCART_WINDOW and data < 9:
                self.store_bank(memory, data + 1)
        elif kind == CartridgeType.ABSOLUTE:
            if address == _ABSOLUTE_SWITCH and data in (1, 2):
                self.store_bank(memory, data - 1)
        elif kind == CartridgeType.ACTIVISION:
            if address >= _ACTIVISION_SWITCH:
                self.store_bank(memory, address & 7)

        if (
            self.has_pokey
            and self.pokey is not None
            and _POKEY_FIRST <= address <= _POKEY_LAST
        ):
            self.pokey.set_register(address, data)

    def release(self) -> None:
        """Drop the loaded image."""
        self._rom = None