# sevenhundred

Core pieces of an emulator for a 7800-class home console. It is written in plain
Python and has no third-party dependencies.

## Modules

- `sevenhundred.hashing.compute_digest(data)` returns the 32-character lowercase
  hex MD5 digest that identifies a cartridge image.
- `sevenhundred.memory.Memory(cartridge, bios, tia, riot)` is the 64 KiB address
  space, split into 4 KiB pages. The low 16 KiB is RAM.
  - `read(address)` reads as the CPU does. Reading `INTIM` or `INTFLG` clears the
    timer interrupt flag.
  - `peek(address)` reads with no side effects.
  - `write(address, data)` writes as the CPU does:
    - `WSYNC` and `INPTCTRL` are handled by the memory map. `INPTCTRL` maps the
      cartridge or the BIOS into memory.
    - TIA audio registers go to `tia.set_register`.
    - `SWCHA`, `SWCHB` and the timer registers go to the RIOT object.
    - Writes to the mirrored RAM ranges also update the mirror.
    - Addresses of `0x4000` and above go to the cartridge.
  - `write_rom(address, data)` maps a ROM image page by page.
  - `clear_rom(address, size)` maps the 16 KiB of cartridge RAM.
  - Both raise `ValueError` when the data does not fit.
  - `reset()` clears RAM and maps it back in.
- `sevenhundred.cartridge.Cartridge(pokey=None)` and `CartridgeType`:
  - `load(data)` parses the `ATARI7800` header when the image has one, then sets
    `type`, `has_pokey`, `controllers`, `region`, `flags` and `digest`. It raises
    `ValueError` when the image is 128 bytes or shorter, and for CC2 images.
  - `store(memory)` maps the power-on banks.
  - `store_bank(memory, bank)` switches a bank.
  - `write(memory, address, data)` handles the bank switching writes of the
    SuperCart, Absolute and Activision layouts. It forwards POKEY register
    writes (`0x4000`–`0x4008`) to the attached chip.
  - `release()` drops the image.
- `sevenhundred.bios.Bios` holds `enabled` and `data`.
  - `load(path)` reads an image from disk.
  - `store(memory)` maps the image so that it ends at the top of memory, but only
    when `enabled` is set.
  - `release()` drops the image.
- `sevenhundred.pokey.Pokey(rng=None)` is the POKEY sound chip.
  - `set_register(address, value)` writes one of the `PokeyRegister` addresses.
  - `process(length)` renders 8-bit samples into `buffer` and returns them.
  - `reset()` reseeds the noise table from `rng`. Pass a seeded `random.Random`
    to get repeatable output.
  - `clear()` zeroes the buffer.
- `sevenhundred.maria.Maria(memory, nmi=None)` is the MARIA display processor.
  - `render_scanline(render=True)` walks the display lists for the current
    `scanline`. It fills `surface` with palette indices and returns the DMA
    cycles used.
  - `nmi` is called when a zone requests a non-maskable interrupt.
  - `Rect` describes `display_area` and `visible_area`. The defaults are the
    NTSC areas.
- `sevenhundred.prosystem` reads and writes save states:
  - `save_state(cpu, digest, bank, ram, cartridge_type)` encodes a state.
  - `load_state(data, digest, cartridge_type)` decodes a state into a
    `SaveState`.
  - Both raise `StateError` when a state is malformed or belongs to another
    cartridge. Saving a SuperCart RAM cartridge also raises `StateError`.
  - `CpuState` holds the 6502 registers.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from sevenhundred.bios import Bios
from sevenhundred.cartridge import Cartridge
from sevenhundred.memory import Memory
from sevenhundred.pokey import Pokey
from sevenhundred.prosystem import CpuState, load_state, save_state


class QuietChips:
    """Stands in for the TIA and RIOT chips."""

    def set_register(self, address, data): ...
    def set_dra(self, data): ...
    def set_drb(self, data): ...
    def set_timer(self, timer, data): ...


with open("game.a78", "rb") as fh:
    image = fh.read()

cartridge = Cartridge(pokey=Pokey())
cartridge.load(image)
print(cartridge.digest, cartridge.type.name)

chips = QuietChips()
memory = Memory(cartridge, Bios(), chips, chips)
cartridge.store(memory)
reset_vector = memory.peek(0xFFFC) | (memory.peek(0xFFFD) << 8)

state = save_state(
    CpuState(pc=reset_vector), cartridge.digest, cartridge.bank, memory.ram, cartridge.type
)
restored = load_state(state, cartridge.digest, cartridge.type)
print(hex(restored.cpu.pc))
```

## What this package does not do

- There is no 6502 CPU core, TIA sound chip or RIOT chip. `Memory` calls objects
  that you supply for these.
- There is no frame loop and no command-line program.
- There are no colour palettes or NTSC/PAL region tables. `Maria` fills its
  surface with palette indices, and turning those into RGB is up to the caller.
- Nothing is displayed on screen and no audio is played.