"""Save states: snapshots of the CPU registers, cartridge bank and console RAM."""

from __future__ import annotations

from dataclasses import dataclass

from .cartridge import CartridgeType
from .memory import RAM_SIZE

STATE_HEADER = b"PRO-SYSTEM STATE"
STATE_VERSION = 1
DIGEST_SIZE = 32
_DATE_SIZE = 4
_REGISTER_COUNT = 8

_DIGEST_OFFSET = len(STATE_HEADER) + 1 + _DATE_SIZE
_REGISTERS_OFFSET = _DIGEST_OFFSET + DIGEST_SIZE
_RAM_OFFSET = _REGISTERS_OFFSET + _REGISTER_COUNT

STATE_SIZE = _RAM_OFFSET + RAM_SIZE
CARTRIDGE_RAM_SIZE = 0x4000
SUPERCART_RAM_STATE_SIZE = 32829


class StateError(ValueError):
    """A save state cannot be written or does not fit the loaded cartridge."""


@dataclass(frozen=True)
class CpuState:
    """The 6502 registers kept in a save state."""

    a: int = 0
    x: int = 0
    y: int = 0
    p: int = 0
    s: int = 0
    pc: int = 0


@dataclass(frozen=True)
class SaveState:
    """The contents of a decoded save state."""

    version: int
    cpu: CpuState
    bank: int
    ram: bytes
    cartridge_ram: bytes | None = None


def _encode_digest(digest: str) -> bytes:
    raw = digest.encode("ascii")
    if len(raw) > DIGEST_SIZE:
        raise ValueError(f"a cartridge digest has at most {DIGEST_SIZE} characters")
    return raw.ljust(DIGEST_SIZE, b"\0")


def save_state(
    cpu: CpuState,
    digest: str,
    bank: int,
    ram: bytes | bytearray | memoryview,
    cartridge_type: int,
) -> bytes:
    """Encode a save state for a cartridge identified by *digest*."""
    if cartridge_type == CartridgeType.SUPERCART_RAM:
        raise StateError("states of SuperCart RAM cartridges cannot be saved")
    ram = bytes(ram)
    if len(ram) != RAM_SIZE:
        raise ValueError(f"console RAM has {RAM_SIZE} bytes, got {len(ram)}")
    registers = bytes(
        value & 0xFF
        for value in (cpu.a, cpu.x, cpu.y, cpu.p, cpu.s, cpu.pc, cpu.pc >> 8, bank)
    )
    return b"".join(
        (
            STATE_HEADER,
            bytes((STATE_VERSION,)),
            bytes(_DATE_SIZE),
            _encode_digest(digest),
            registers,
            ram,
        )
    )


def load_state(
    data: bytes | bytearray | memoryview,
    digest: str,
    cartridge_type: int,
) -> SaveState:
    """Decode a save state, checking that it belongs to the cartridge *digest*."""
    data = bytes(data)
    if data[: len(STATE_HEADER)] != STATE_HEADER:
        raise StateError("not a save state")
    if len(data) < STATE_SIZE:
        raise StateError(f"save state is truncated: {len(data)} of {STATE_SIZE} bytes")

    version = data[len(STATE_HEADER)]
    stored = data[_DIGEST_OFFSET:_REGISTERS_OFFSET].split(b"\0", 1)[0]
    if stored.decode("ascii", errors="replace") != digest:
        raise StateError("save state belongs to a different cartridge")

    a, x, y, p, s, pc_low, pc_high, bank = data[_REGISTERS_OFFSET:_RAM_OFFSET]
    cpu = CpuState(a=a, x=x, y=y, p=p, s=s, pc=pc_low | (pc_high << 8))
    ram = data[_RAM_OFFSET:STATE_SIZE]

    cartridge_ram = None
    if cartridge_type == CartridgeType.SUPERCART_RAM:
        if len(data) != SUPERCART_RAM_STATE_SIZE:
            raise StateError(
                f"SuperCart RAM state must be {SUPERCART_RAM_STATE_SIZE} bytes, "
                f"got {len(data)}"
            )
        cartridge_ram = data[STATE_SIZE : STATE_SIZE + CARTRIDGE_RAM_SIZE]

    return SaveState(
        version=version, cpu=cpu, bank=bank, ram=ram, cartridge_ram=cartridge_ram
    )