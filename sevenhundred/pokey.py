"""The POKEY sound chip found on some cartridges: four tone and noise channels."""

from __future__ import annotations

import random
from enum import IntEnum

BUFFER_SIZE = 624
DEFAULT_SIZE = 524

# AUDC bits
_NOTPOLY5 = 0x80
_POLY4 = 0x40
_PURE = 0x20
_VOLUME_ONLY = 0x10
_VOLUME_MASK = 0x0F

# AUDCTL bits
_POLY9 = 0x80
_CH1_179 = 0x40
_CH3_179 = 0x20
_CH1_CH2 = 0x10
_CH3_CH4 = 0x08
_CLOCK_15 = 0x01

_DIV_64 = 28
_DIV_15 = 114

_POLY4_SIZE = 0x000F
_POLY5_SIZE = 0x001F
_POLY9_SIZE = 0x01FF
_POLY17_SIZE = 0x0001FFFF

_CHANNELS = 4
_IDLE = 0x7FFFFFFF
_UINT32 = 0xFFFFFFFF

_POLY4_TABLE = bytes((1, 1, 0, 1, 1, 1, 0, 0, 0, 0, 1, 0, 1, 0, 0))
_POLY5_TABLE = bytes(
    (0, 0, 1, 1, 0, 0, 0, 1, 1, 1, 1, 0, 0, 1, 0, 1,
     0, 1, 1, 0, 1, 1, 1, 0, 1, 0, 0, 0, 0, 0, 1)
)


class PokeyRegister(IntEnum):
    """Addresses of the POKEY audio registers."""

    AUDF1 = 0x4000
    AUDC1 = 0x4001
    AUDF2 = 0x4002
    AUDC2 = 0x4003
    AUDF3 = 0x4004
    AUDC3 = 0x4005
    AUDF4 = 0x4006
    AUDC4 = 0x4007
    AUDCTL = 0x4008


_FREQUENCY_REGISTERS = {
    PokeyRegister.AUDF1: 0,
    PokeyRegister.AUDF2: 1,
    PokeyRegister.AUDF3: 2,
    PokeyRegister.AUDF4: 3,
}
_CONTROL_REGISTERS = {
    PokeyRegister.AUDC1: 0,
    PokeyRegister.AUDC2: 1,
    PokeyRegister.AUDC3: 2,
    PokeyRegister.AUDC4: 3,
}


class Pokey:
    """Sound generator that renders 8-bit samples into a ring of ``size`` bytes."""

    frequency = 1787520
    sample_rate = 31440

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.buffer = bytearray(BUFFER_SIZE)
        self.size = DEFAULT_SIZE
        self._sound_cntr = 0
        self.reset()

    def reset(self) -> None:
        """Reseed the 17-bit noise table and return every channel to silence."""
        self._poly17 = bytes(self.rng.getrandbits(1) for _ in range(_POLY17_SIZE))
        self._poly_adjust = 0
        self._poly4_cntr = 0
        self._poly5_cntr = 0
        self._poly17_cntr = 0
        self._sample_max = (self.frequency << 8) // self.sample_rate
        # Fixed point with 8 fractional bits; the integer part counts chip cycles.
        self._sample_count = 0
        self._poly17_size = _POLY17_SIZE
        self._out_vol = [0] * _CHANNELS
        self._output = [0] * _CHANNELS
        self._divide_count = [0] * _CHANNELS
        self._divide_max = [_IDLE] * _CHANNELS
        self._audc = [0] * _CHANNELS
        self._audf = [0] * _CHANNELS
        self._audctl = 0
        self._base_multiplier = _DIV_64

    def _divider(self, channel: int) -> int:
        base = self._base_multiplier
        ctl = self._audctl
        fast = _CH1_179 if channel < 2 else _CH3_179
        joined = _CH1_CH2 if channel < 2 else _CH3_CH4
        audf = self._audf
        if channel % 2 == 0:
            if ctl & fast:
                return audf[channel] + 4
            return (audf[channel] + 1) * base
        if ctl & joined:
            combined = audf[channel] * 256 + audf[channel - 1]
            if ctl & fast:
                return combined + 7
            return (combined + 1) * base
        return (audf[channel] + 1) * base

    def set_register(self, address: int, value: int) -> None:
        """Write an audio register; unknown addresses are ignored."""
        value &= 0xFF
        if address in _FREQUENCY_REGISTERS:
            channel = _FREQUENCY_REGISTERS[address]
            self._audf[channel] = value
            mask = 1 << channel
            if channel == 0 and self._audctl & _CH1_CH2:
                mask |= 1 << 1
            elif channel == 2 and self._audctl & _CH3_CH4:
                mask |= 1 << 3
        elif address in _CONTROL_REGISTERS:
            channel = _CONTROL_REGISTERS[address]
            self._audc[channel] = value
            mask = 1 << channel
        elif address == PokeyRegister.AUDCTL:
            self._audctl = value
            mask = 0b1111
            self._poly17_size = _POLY9_SIZE if value & _POLY9 else _POLY17_SIZE
            self._base_multiplier = _DIV_15 if value & _CLOCK_15 else _DIV_64
        else:
            mask = 0

        affected = [channel for channel in range(_CHANNELS) if mask & (1 << channel)]

        for channel in affected:
            new_value = self._divider(channel)
            if new_value != self._divide_max[channel]:
                self._divide_max[channel] = new_value
                if self._divide_count[channel] > new_value:
                    self._divide_count[channel] = 0 if channel == 0 else new_value

        for channel in affected:
            audc = self._audc[channel]
            if (
                audc & _VOLUME_ONLY
                or audc & _VOLUME_MASK == 0
                or self._divide_max[channel] < (self._sample_max >> 8)
            ):
                self._out_vol[channel] = audc & _VOLUME_MASK
                self._divide_count[channel] = _IDLE
                self._divide_max[channel] = _IDLE

    def _clock_channel(self, channel: int) -> None:
        adjust = self._poly_adjust
        self._poly4_cntr = (self._poly4_cntr + adjust) % _POLY4_SIZE
        self._poly5_cntr = (self._poly5_cntr + adjust) % _POLY5_SIZE
        self._poly17_cntr = (self._poly17_cntr + adjust) % self._poly17_size
        self._poly_adjust = 0
        self._divide_count[channel] = (
            self._divide_count[channel] + self._divide_max[channel]
        ) & _UINT32

        audc = self._audc[channel]
        if audc & _NOTPOLY5 or _POLY5_TABLE[self._poly5_cntr]:
            if audc & _PURE:
                self._output[channel] = int(not self._output[channel])
            elif audc & _POLY4:
                self._output[channel] = _POLY4_TABLE[self._poly4_cntr]
            else:
                self._output[channel] = self._poly17[self._poly17_cntr]

        self._out_vol[channel] = audc & _VOLUME_MASK if self._output[channel] else 0

    def process(self, length: int) -> bytes:
        """Render *length* samples into the buffer and return them."""
        if length < 0:
            raise ValueError(f"sample count must not be negative, got {length}")
        start = self._sound_cntr
        if start + length > BUFFER_SIZE:
            raise ValueError(
                f"{length} samples at offset {start} overrun the {BUFFER_SIZE}-byte buffer"
            )

        samples = bytearray()
        while len(samples) < length:
            event_min = self._sample_count >> 8
            next_event = None
            for channel, count in enumerate(self._divide_count):
                if count <= event_min:
                    event_min = count
                    next_event = channel

            self._divide_count = [count - event_min for count in self._divide_count]
            self._sample_count -= event_min << 8
            self._poly_adjust += event_min

            if next_event is not None:
                self._clock_channel(next_event)
            else:
                self._sample_count += self._sample_max
                level = sum(self._out_vol) & 0xFF
                samples.append(((level << 2) + 8) & 0xFF)

        self.buffer[start : start + length] = samples
        self._sound_cntr += length
        if self._sound_cntr >= self.size:
            self._sound_cntr = 0
        return bytes(samples)

    def clear(self) -> None:
        """Zero the sample buffer."""
        self.buffer[:] = bytes(BUFFER_SIZE)