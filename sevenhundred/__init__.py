"""Core components of a 7800-class home console emulator: memory map, cartridges, BIOS, POKEY, MARIA and save states."""

__version__ = "0.1.0"

__all__ = [
    "bios",
    "cartridge",
    "hashing",
    "maria",
    "memory",
    "pokey",
    "prosystem",
]