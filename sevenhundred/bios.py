"""The optional console BIOS image."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .memory import ADDRESS_SPACE, Memory


@dataclass
class Bios:
    """A BIOS image that is mapped at the top of the address space when enabled."""

    enabled: bool = False
    data: bytes | None = None

    @property
    def loaded(self) -> bool:
        return self.data is not None

    def load(self, path: str | os.PathLike[str]) -> None:
        """Read the BIOS image from *path*, replacing any image already loaded."""
        if not os.fspath(path):
            raise ValueError("a BIOS file name is required")
        self.release()
        with open(path, "rb") as stream:
            self.data = stream.read()

    def release(self) -> None:
        """Drop the loaded image."""
        self.data = None

    def store(self, memory: Memory) -> None:
        """Map the image so that it ends at the top of *memory*, if enabled."""
        if self.data is not None and self.enabled:
            memory.write_rom(ADDRESS_SPACE - len(self.data), self.data)