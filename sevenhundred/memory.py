"""The console's 64 KiB address space: RAM, mapped ROM pages and I/O registers."""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol

PAGE_SIZE = 0x1000
RAM_SIZE = 0x4000
CART_RAM_SIZE = 0x4000
ADDRESS_SPACE = 0x10000
_PAGE_COUNT = ADDRESS_SPACE // PAGE_SIZE
_PAGE_SHIFT = 12
_PAGE_MASK = PAGE_SIZE - 1

_INPTCTRL_CARTRIDGE = 22
_INPTCTRL_BIOS = 2
_WSYNC_DISABLED_FLAG = 128


class Register(IntEnum):
    """Addresses of the hardware registers in the low address space."""

    INPTCTRL = 0x01
    INPT0 = 0x08
    INPT1 = 0x09
    INPT2 = 0x0A
    INPT3 = 0x0B
    INPT4 = 0x0C
    INPT5 = 0x0D
    AUDC0 = 0x15
    AUDC1 = 0x16
    AUDF0 = 0x17
    AUDF1 = 0x18
    AUDV0 = 0x19
    AUDV1 = 0x1A
    BACKGRND = 0x20
    WSYNC = 0x24
    MSTAT = 0x28
    DPPH = 0x2C
    DPPL = 0x30
    CHARBASE = 0x34
    CTRL = 0x3C
    SWCHA = 0x280
    SWCHB = 0x282
    INTIM = 0x284
    INTFLG = 0x285
    TIM1T = 0x294
    TIM8T = 0x295
    TIM64T = 0x296
    T1024T = 0x297


_TIA_REGISTERS = frozenset(
    {
        Register.AUDC0,
        Register.AUDC1,
        Register.AUDF0,
        Register.AUDF1,
        Register.AUDV0,
        Register.AUDV1,
    }
)
_INPUT_REGISTERS = frozenset(
    {
        Register.INPT0,
        Register.INPT1,
        Register.INPT2,
        Register.INPT3,
        Register.INPT4,
        Register.INPT5,
    }
)
_TIMER_REGISTERS = {
    address: timer
    for timer in (Register.TIM1T, Register.TIM8T, Register.TIM64T, Register.T1024T)
    for address in (timer, timer | 0x8)
}
_INTIM_ADDRESSES = frozenset({Register.INTIM, Register.INTIM | 0x2})
_INTFLG_ADDRESSES = frozenset({Register.INTFLG, Register.INTFLG | 0x2})

# RAM ranges that are mirrored, with the offset to the mirror.
_MIRRORS = (
    (range(8256, 8448), -8192),
    (range(8512, 8703), -8192),
    (range(64, 256), 8192),
    (range(320, 512), 8192),
)


class CartridgePort(Protocol):
    """What the memory map needs from a cartridge."""

    flags: int

    @property
    def loaded(self) -> bool: ...

    def store(self, memory: Memory) -> None: ...

    def write(self, memory: Memory, address: int, data: int) -> None: ...


class BiosPort(Protocol):
    """What the memory map needs from a BIOS image."""

    enabled: bool

    def store(self, memory: Memory) -> None: ...


class TiaPort(Protocol):
    """What the memory map needs from the TIA sound chip."""

    def set_register(self, address: int, data: int) -> None: ...


class RiotPort(Protocol):
    """What the memory map needs from the RIOT chip."""

    def set_dra(self, data: int) -> None: ...

    def set_drb(self, data: int) -> None: ...

    def set_timer(self, timer: int, data: int) -> None: ...


class Memory:
    """Paged address space: 4 KiB pages map onto RAM, ROM images or cartridge RAM."""

    def __init__(
        self,
        cartridge: CartridgePort,
        bios: BiosPort,
        tia: TiaPort,
        riot: RiotPort,
    ) -> None:
        self.cartridge = cartridge
        self.bios = bios
        self.tia = tia
        self.riot = riot
        self.ram = bytearray(RAM_SIZE)
        self._cart_ram = bytearray(CART_RAM_SIZE)
        open_page = memoryview(bytearray(PAGE_SIZE))
        self._pages: list[memoryview] = [open_page] * _PAGE_COUNT
        self._map_ram()

    def _map_ram(self) -> None:
        view = memoryview(self.ram)
        self._pages[: RAM_SIZE // PAGE_SIZE] = [
            view[start : start + PAGE_SIZE] for start in range(0, RAM_SIZE, PAGE_SIZE)
        ]

    def _poke(self, address: int, data: int) -> None:
        self._pages[address >> _PAGE_SHIFT][address & _PAGE_MASK] = data

    def reset(self) -> None:
        """Clear RAM and map it back into the low 16 KiB."""
        self.ram[:] = bytes(RAM_SIZE)
        self._map_ram()

    def peek(self, address: int) -> int:
        """Read a byte without any side effects."""
        address &= ADDRESS_SPACE - 1
        return self._pages[address >> _PAGE_SHIFT][address & _PAGE_MASK]

    def read(self, address: int) -> int:
        """Read a byte as the CPU does; reading the timer clears its interrupt flag."""
        address &= ADDRESS_SPACE - 1
        if address in _INTIM_ADDRESSES:
            self.ram[Register.INTFLG] &= 0x7F
            return self.ram[Register.INTIM]
        if address in _INTFLG_ADDRESSES:
            self.ram[Register.INTFLG] &= 0x7F
            return self.ram[Register.INTFLG]
        return self.peek(address)

    def write(self, address: int, data: int) -> None:
        """Write a byte as the CPU does, dispatching to registers and the cartridge."""
        address &= ADDRESS_SPACE - 1
        data &= 0xFF
        if address >= RAM_SIZE:
            self.cartridge.write(self, address, data)
            return

        if address == Register.WSYNC:
            if not self.cartridge.flags & _WSYNC_DISABLED_FLAG:
                self.ram[Register.WSYNC] = 1
        elif address == Register.INPTCTRL:
            if data == _INPTCTRL_CARTRIDGE and self.cartridge.loaded:
                self.cartridge.store(self)
            elif data == _INPTCTRL_BIOS and self.bios.enabled:
                self.bios.store(self)
        elif address in _INPUT_REGISTERS:
            pass
        elif address in _TIA_REGISTERS:
            self.tia.set_register(address, data)
        elif address == Register.SWCHA:
            self.riot.set_dra(data)
        elif address == Register.SWCHB:
            self.riot.set_drb(data)
        elif address in _TIMER_REGISTERS:
            self.riot.set_timer(_TIMER_REGISTERS[address], data)
        else:
            self._poke(address, data)
            for span, offset in _MIRRORS:
                if address in span:
                    self._poke(address + offset, data)
                    break

    def write_rom(self, address: int, data: bytes | bytearray | memoryview) -> None:
        """Map *data* into the address space starting at *address*, page by page."""
        view = memoryview(data).cast("B")
        if address < 0 or address + len(view) > ADDRESS_SPACE:
            raise ValueError(
                f"ROM of {len(view)} bytes at {address:#06x} does not fit the address space"
            )
        for start in range(0, len(view), PAGE_SIZE):
            chunk = view[start : start + PAGE_SIZE]
            if len(chunk) < PAGE_SIZE:
                chunk = memoryview(bytes(chunk).ljust(PAGE_SIZE, b"\0"))
            self._pages[(address + start) >> _PAGE_SHIFT] = chunk

    def clear_rom(self, address: int, size: int) -> None:
        """Map cartridge RAM over *size* bytes starting at *address*."""
        if size > CART_RAM_SIZE:
            raise ValueError(f"cartridge RAM holds {CART_RAM_SIZE} bytes, not {size}")
        if address < 0 or address + size > ADDRESS_SPACE:
            raise ValueError(
                f"{size} bytes at {address:#06x} do not fit the address space"
            )
        view = memoryview(self._cart_ram)
        for start in range(0, size, PAGE_SIZE):
            self._pages[(address + start) >> _PAGE_SHIFT] = view[start : start + PAGE_SIZE]