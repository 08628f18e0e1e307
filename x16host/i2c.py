"""Bit-banged I2C bus, keyboard and mouse ring buffers, and a PS/2-style mouse."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Mapping

SMC_ADDRESS = 0x42
RTC_ADDRESS = 0x6F

DATA_MASK = 1
CLK_MASK = 2

KEYBOARD_BUFFER_SIZE = 16
MOUSE_BUFFER_SIZE = 16

_STATE_START = 0
_STATE_STOP = -1


def _int8(value: int) -> int:
    return ((value + 0x80) & 0xFF) - 0x80


def _int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


class RingBuffer:
    """FIFO of bytes holding at most ``size - 1`` values; extra values are dropped."""

    def __init__(self, size: int = 16) -> None:
        if size < 2:
            raise ValueError("ring buffer size must be at least 2")
        self.size = size
        self._items: deque[int] = deque()

    def add(self, value: int) -> None:
        """Append a byte, discarding it if the buffer is full."""
        if len(self._items) < self.size - 1:
            self._items.append(value & 0xFF)

    def next(self) -> int:
        """Remove and return the oldest byte, or 0 if the buffer is empty."""
        return self._items.popleft() if self._items else 0

    def flush(self) -> None:
        """Discard every stored byte."""
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class I2CPort:
    """Levels of the bus lines: clock and data in, data out."""

    clk_in: int = 0
    data_in: int = 0
    data_out: int = 0


class I2CBus:
    """I2C target side, dispatching to devices by 7-bit address.

    A device offers ``data(value)`` for each byte written to it,
    ``write()`` once a register write is complete, and ``read()``
    returning the next byte to send.
    """

    def __init__(self, devices: Mapping[int, Any] | None = None) -> None:
        self.devices = dict(devices or {})
        self.port = I2CPort()
        self.keyboard_buffer = RingBuffer(KEYBOARD_BUFFER_SIZE)
        self.mouse_buffer = RingBuffer(MOUSE_BUFFER_SIZE)
        self._old = I2CPort()
        self._state = _STATE_STOP
        self._read_mode = False
        self._value = 0
        self._count = 0
        self._device = 0

    def reset_state(self) -> None:
        """Return the bus to idle and empty the keyboard and mouse buffers."""
        self._state = _STATE_STOP
        self._read_mode = False
        self._value = 0
        self._count = 0
        for device in self.devices.values():
            # A controller that asked for a machine reset forgets the request.
            if hasattr(device, "requested_reset"):
                device.requested_reset = False
        self.mouse_buffer.flush()
        self.keyboard_buffer.flush()

    def _data(self, device: int, value: int) -> None:
        target = self.devices.get(device)
        if target is not None:
            target.data(value)

    def _read(self, device: int) -> int:
        target = self.devices.get(device)
        return target.read() & 0xFF if target is not None else 0xFF

    def _write(self, device: int) -> None:
        target = self.devices.get(device)
        if target is not None:
            target.write()

    def step(self) -> None:
        """React to the current line levels, if they changed since the last step."""
        port, old = self.port, self._old
        if old.clk_in == port.clk_in and old.data_in == port.data_in:
            return

        if self._state == _STATE_STOP and port.clk_in == 0 and port.data_in == 0:
            self._state = _STATE_START

        if (self._state == 1 and port.clk_in == 1 and port.data_in == 1
                and old.data_in == 0):
            self._state = _STATE_STOP
            self._count = 0
            self._read_mode = False

        if self._state != _STATE_STOP and port.clk_in == 1 and old.clk_in == 0:
            port.data_out = 1
            if self._state < 8:
                if self._read_mode:
                    if self._state == 0:
                        self._value = self._read(self._device)
                    port.data_out = 1 if self._value & 0x80 else 0
                    self._value = (self._value << 1) & 0xFF
                else:
                    self._value = ((self._value << 1) | port.data_in) & 0xFF
                self._state += 1
            else:
                self._acknowledge()
                self._state = _STATE_START

        self._old = replace(port)

    def _acknowledge(self) -> None:
        port = self.port
        if self._read_mode:
            if port.data_in:
                self._count = 0
                self._read_mode = False
            return

        ack = True
        if self._count == 0:
            self._device = self._value >> 1
            self._read_mode = bool(self._value & 1)
            if self._device not in self.devices:
                ack = False
        elif self._count == 1:
            self._data(self._device, self._value)
        else:
            self._data(self._device, self._value)
            self._write(self._device)

        if ack:
            port.data_out = 0
            self._count += 1
        else:
            self._count = 0
            self._read_mode = False


class Mouse:
    """Mouse that reports movement as PS/2 packets into a ring buffer.

    Byte 0 holds, from bit 7 down: Y overflow, X overflow, Y sign,
    X sign, always 1, middle, right and left button. Bytes 1 and 2 are
    the X and Y movement; a wheel mouse adds the wheel as byte 3.
    """

    def __init__(self, buffer: RingBuffer) -> None:
        self.buffer = buffer
        self.buttons = 0
        self.device_id = 3
        self._diff_x = 0
        self._diff_y = 0
        self._wheel = 0

    def _has_wheel(self) -> bool:
        return self.device_id in (3, 4)

    def _send(self, x: int, y: int, buttons: int, wheel: int) -> bool:
        packet_size = 4 if self._has_wheel() else 3
        if len(self.buffer) >= self.buffer.size - packet_size:
            return False
        byte0 = ((y >> 9) & 1) << 5 | ((x >> 9) & 1) << 4 | 1 << 3 | buttons
        self.buffer.add(byte0)
        self.buffer.add(x)
        self.buffer.add(y)
        if self._has_wheel():
            self.buffer.add(wheel)
        return True

    def send_state(self) -> None:
        """Queue packets for the accumulated movement, buttons and wheel."""
        while True:
            send_x = max(-256, min(255, self._diff_x))
            send_y = max(-256, min(255, self._diff_y))
            self._send(send_x, send_y, self.buttons, self._wheel)
            self._diff_x = _int16(self._diff_x - send_x)
            self._diff_y = _int16(self._diff_y - send_y)
            self._wheel = 0
            if not (self._diff_x != 0 and self._diff_y != 0):
                break

    def button_down(self, num: int) -> None:
        self.buttons = (self.buttons | (1 << num)) & 0xFF

    def button_up(self, num: int) -> None:
        self.buttons &= (1 << num) ^ 0xFF

    def move(self, x: int, y: int) -> None:
        """Accumulate movement; positive ``y`` moves the pointer down on screen."""
        self._diff_x = _int16(self._diff_x + x)
        self._diff_y = _int16(self._diff_y - y)

    def read(self, reg: int) -> int:
        return 0xFF

    def set_wheel(self, y: int) -> None:
        """Set the wheel movement for the next packet, clamped to -8..7."""
        if not self._has_wheel():
            return
        y = _int8(y)
        if y < -7:
            self._wheel = 7
        elif y > 8:
            self._wheel = -8
        else:
            self._wheel = -y

    def set_device_id(self, d: int) -> None:
        """Select the protocol: 0 (plain) or 3 (wheel); 4 is taken as 3."""
        if d in (0, 3):
            self.device_id = d
        elif d == 4:
            self.device_id = 3
        else:
            self.device_id = 0
        self.buffer.flush()