import pytest

from sevenhundred.memory import (
    CART_RAM_SIZE,
    PAGE_SIZE,
    RAM_SIZE,
    Memory,
    Register,
)


class FakeCartridge:
    def __init__(self, loaded=True, flags=0, image=b""):
        self.loaded = loaded
        self.flags = flags
        self.image = image
        self.stores = 0
        self.writes = []

    def store(self, memory):
        self.stores += 1
        if self.image:
            memory.write_rom(0x10000 - len(self.image), self.image)

    def write(self, memory, address, data):
        self.writes.append((address, data))


class FakeBios:
    def __init__(self, enabled=False):
        self.enabled = enabled
        self.stores = 0

    def store(self, memory):
        self.stores += 1


class FakeTia:
    def __init__(self):
        self.calls = []

    def set_register(self, address, data):
        self.calls.append((address, data))


class FakeRiot:
    def __init__(self):
        self.dra = []
        self.drb = []
        self.timers = []

    def set_dra(self, data):
        self.dra.append(data)

    def set_drb(self, data):
        self.drb.append(data)

    def set_timer(self, timer, data):
        self.timers.append((timer, data))


def make_memory(cartridge=None, bios=None):
    memory = Memory(
        cartridge or FakeCartridge(),
        bios or FakeBios(),
        FakeTia(),
        FakeRiot(),
    )
    memory.reset()
    return memory


def test_ram_round_trip():
    memory = make_memory()
    memory.write(0x1800, 0x5A)
    assert memory.read(0x1800) == 0x5A
    assert memory.peek(0x1800) == 0x5A
    assert memory.ram[0x1800] == 0x5A


def test_write_masks_to_byte():
    memory = make_memory()
    memory.write(0x1801, 0x1FF)
    assert memory.peek(0x1801) == 0xFF


def test_reset_clears_ram():
    memory = make_memory()
    memory.write(0x1000, 7)
    memory.write(0x3FFF, 9)
    memory.reset()
    assert memory.peek(0x1000) == 0
    assert memory.peek(0x3FFF) == 0
    assert memory.ram == bytearray(RAM_SIZE)


@pytest.mark.parametrize(
    "address, mirror",
    [(64, 8256), (255, 8447), (320, 8512), (511, 8703), (8256, 64), (8702, 510)],
)
def test_mirrored_ram(address, mirror):
    memory = make_memory()
    memory.write(address, 0x42)
    assert memory.peek(mirror) == 0x42


def test_last_high_mirror_address_is_not_mirrored():
    memory = make_memory()
    memory.write(8703, 0x42)
    assert memory.peek(8703) == 0x42
    assert memory.peek(8703 - 8192) == 0


def test_unmirrored_ram_stays_put():
    memory = make_memory()
    memory.write(0x1000, 0x11)
    assert memory.peek(0x1000 + 8192) == 0


def test_reading_timer_clears_interrupt_flag():
    memory = make_memory()
    memory.ram[Register.INTIM] = 0x33
    memory.ram[Register.INTFLG] = 0x85
    assert memory.read(Register.INTIM) == 0x33
    assert memory.peek(Register.INTFLG) == 0x05


def test_reading_interrupt_flag_mirror_clears_and_returns_it():
    memory = make_memory()
    memory.ram[Register.INTFLG] = 0xC1
    assert memory.read(Register.INTFLG | 0x2) == 0x41
    assert memory.ram[Register.INTFLG] == 0x41


def test_peek_has_no_side_effects():
    memory = make_memory()
    memory.ram[Register.INTFLG] = 0x80
    assert memory.peek(Register.INTIM) == 0
    assert memory.ram[Register.INTFLG] == 0x80


@pytest.mark.parametrize(
    "register",
    [
        Register.AUDC0,
        Register.AUDC1,
        Register.AUDF0,
        Register.AUDF1,
        Register.AUDV0,
        Register.AUDV1,
    ],
)
def test_sound_registers_go_to_tia(register):
    memory = make_memory()
    memory.write(register, 7)
    assert memory.tia.calls == [(register, 7)]
    assert memory.ram[register] == 0


def test_port_registers_go_to_riot():
    memory = make_memory()
    memory.write(Register.SWCHA, 0xF0)
    memory.write(Register.SWCHB, 0x0F)
    assert memory.riot.dra == [0xF0]
    assert memory.riot.drb == [0x0F]
    assert memory.ram[Register.SWCHA] == 0


@pytest.mark.parametrize(
    "address, timer",
    [
        (Register.TIM1T, Register.TIM1T),
        (Register.TIM8T | 0x8, Register.TIM8T),
        (Register.TIM64T | 0x8, Register.TIM64T),
        (Register.T1024T, Register.T1024T),
    ],
)
def test_timer_registers_go_to_riot(address, timer):
    memory = make_memory()
    memory.write(address, 3)
    assert memory.riot.timers == [(timer, 3)]


def test_input_registers_ignore_writes():
    memory = make_memory()
    memory.write(Register.INPT4, 0x80)
    assert memory.peek(Register.INPT4) == 0


def test_wsync_sets_flag():
    memory = make_memory()
    memory.write(Register.WSYNC, 0)
    assert memory.ram[Register.WSYNC] == 1


def test_wsync_ignored_when_cartridge_disables_it():
    memory = make_memory(cartridge=FakeCartridge(flags=128))
    memory.write(Register.WSYNC, 0)
    assert memory.ram[Register.WSYNC] == 0


def test_inptctrl_stores_loaded_cartridge():
    image = bytes([0xAB]) * PAGE_SIZE
    cartridge = FakeCartridge(image=image)
    memory = make_memory(cartridge=cartridge)
    memory.write(Register.INPTCTRL, 22)
    assert cartridge.stores == 1
    assert memory.peek(0xF123) == 0xAB


def test_inptctrl_skips_unloaded_cartridge():
    cartridge = FakeCartridge(loaded=False)
    bios = FakeBios(enabled=True)
    memory = make_memory(cartridge=cartridge, bios=bios)
    memory.write(Register.INPTCTRL, 22)
    assert cartridge.stores == 0
    assert bios.stores == 0


def test_inptctrl_stores_enabled_bios():
    bios = FakeBios(enabled=True)
    memory = make_memory(bios=bios)
    memory.write(Register.INPTCTRL, 2)
    assert bios.stores == 1


def test_inptctrl_skips_disabled_bios():
    bios = FakeBios(enabled=False)
    memory = make_memory(bios=bios)
    memory.write(Register.INPTCTRL, 2)
    assert bios.stores == 0


def test_high_writes_go_to_cartridge():
    memory = make_memory()
    memory.write(0x8000, 5)
    memory.write(0xFFFF, 6)
    assert memory.cartridge.writes == [(0x8000, 5), (0xFFFF, 6)]


def test_write_rom_maps_pages():
    memory = make_memory()
    image = bytes(range(256)) * 64
    memory.write_rom(0xC000, image)
    assert memory.peek(0xC005) == 5
    assert memory.peek(0xFFFF) == 255
    assert memory.read(0xD0FE) == 254


def test_write_rom_pads_short_page():
    memory = make_memory()
    memory.write_rom(0xF000, b"\x01\x02")
    assert memory.peek(0xF001) == 2
    assert memory.peek(0xF002) == 0


def test_write_rom_outside_address_space_is_rejected():
    memory = make_memory()
    with pytest.raises(ValueError):
        memory.write_rom(0xF000, bytes(2 * PAGE_SIZE))


def test_clear_rom_maps_cartridge_ram():
    memory = make_memory()
    memory.write_rom(0x4000, bytes([0x77]) * CART_RAM_SIZE)
    memory.clear_rom(0x4000, CART_RAM_SIZE)
    assert memory.peek(0x4000) == 0
    assert memory.peek(0x7FFF) == 0


def test_clear_rom_too_large_is_rejected():
    memory = make_memory()
    with pytest.raises(ValueError):
        memory.clear_rom(0x4000, CART_RAM_SIZE + 1)


def test_reset_keeps_rom_mapping():
    memory = make_memory()
    memory.write_rom(0xC000, bytes([0x99]) * PAGE_SIZE)
    memory.reset()
    assert memory.peek(0xC000) == 0x99