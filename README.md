# x16host

Host-side building blocks for a Commander X16 emulator, in plain Python with
no third-party dependencies.

## Modules

### `x16host.iso8859_15`

Conversion between Unicode code points and ISO 8859-15 (Latin-9), the
character set the X16 uses for file names and text.

- `iso8859_15_from_unicode(c)` – Latin-9 byte for a code point; a line feed
  becomes a carriage return, anything Latin-9 lacks becomes `?`.
- `unicode_from_iso8859_15(c)` – code point for a Latin-9 byte.
- `print_iso8859_15_char(c, file=None)` – write one Latin-9 character to a
  text stream (standard output by default).

### `x16host.hostfiles`

Access to image files (SD card images and the like) with transparent gzip
handling.

- `FileRegistry.open(path, mode="rb")` returns an `X16File` and raises
  `OSError` on failure. A name ending in `.gz`, `-gz`, `.z`, `-z`, `_z` or `.Z`
  is inflated into `<path>.tmp`; on `close()` the temporary file is written back
  compressed if anything was written, then removed.
- `X16File` offers `size()`, `seek(pos, origin)`, `tell()`, `read(size)`,
  `write(data)`, `read8()` and `write8(value)`, and works as a context manager.
  `seek` clamps to the size the file had when opened; `Origin` holds `SET`,
  `END` and `CUR`.
- `FileRegistry.shutdown()` closes every file still open.
- `is_compressed_type(path)` and `find_extension(path, mark=None)` inspect
  file names.

### `x16host.i2c`

- `I2CBus` – the target side of a bit-banged I2C bus. Set the line levels on
  `bus.port` (an `I2CPort`) and call `step()`; bytes are dispatched to the
  devices passed in by 7-bit address, each offering `data(value)`, `write()`
  and `read()`. `reset_state()` idles the bus and empties its
  `keyboard_buffer` and `mouse_buffer`.
- `RingBuffer` – byte FIFO holding at most `size - 1` values: `add`, `next`
  (0 when empty), `flush`, `len()`.
- `Mouse` – accumulates movement, buttons and wheel and queues PS/2-style
  packets into a `RingBuffer`: `move`, `button_down`, `button_up`,
  `set_wheel`, `send_state`, `set_device_id`, `read`.

### `x16host.ieee_paths`

The pieces of a host-filesystem drive that deal with status and paths.

- `DosStatus` – the command-channel status message (`set_error`,
  `set_error_text`, `clear_error`, `read_byte`); codes are in `DosError`,
  texts from `error_string(code)`.
- `KernalFlags` and `locate_cbdos_flags(memory)` – find and update the
  KERNAL's `cbdos_flags` byte (activity and error bits) through any object
  with `read(address, bank=0)` and `write(address, value, bank=0)`.
- `parse_dos_filename(name, dirhandling=False)` – turns
  `[[@][medium][/dir/ | //dir/]:]path` into a `ParsedName(name, overwrite)`;
  raises `ValueError` for a malformed directory prefix.
- `HostPaths(status, fsroot=None, startin=None)` – an emulated working
  directory jailed inside `fsroot`. `resolve_iso(name, must_exist, wildcard)`
  and `resolve_utf8(...)` resolve names case-insensitively with `*` and `?`
  wildcards (restricted by `Wildcard.ALL`, `PRG` or `DIR`), returning the host
  path or `None` with the status set. `display_cwd(length)` gives the
  directory header text.
- `case_fold_unicode`, `case_fold_iso` and `utf8_to_iso` handle name
  comparison and conversion.

### `x16host.debugger_view`

Text for a debugger panel: `format_number`, `format_decimal` (digits grouped
by spaces), `format_address`, `format_vram_address`, `breakpoint_text`,
`register_labels`, `stack_lines` (a list of `TextCell`) and
`memory_dump_lines`, plus the panel's colours and column positions.

## Examples

```python
from x16host.i2c import RingBuffer, Mouse

buffer = RingBuffer()
mouse = Mouse(buffer)
mouse.button_down(0)
mouse.move(5, 3)
mouse.send_state()
packet = [buffer.next() for _ in range(len(buffer))]
assert packet == [0x29, 0x05, 0xFD, 0x00]
```

```python
from x16host.ieee_paths import DosStatus, parse_dos_filename

assert parse_dos_filename(b"@0:FILE.PRG") == (b"FILE.PRG", True)
assert parse_dos_filename(b"//DIR/:FILE.PRG").name == b"/DIR/FILE.PRG"

status = DosStatus()
status.set_error(0x62)
assert status.message == b"62, FILE NOT FOUND,00,00\r"
```

```python
from x16host.debugger_view import format_address, format_decimal

assert format_address(3, 0xA000, 0) == "03:A000"
assert format_decimal(1234567, 14) == "     1 234 567"
```

## What this package does not do

- It has no complete drive: there is no handling of the LISTEN/TALK byte
  protocol, no channels for opening, reading and writing files, no DOS
  command interpreter and no `$` directory listings. `x16host.ieee_paths`
  provides only the status, flag and path-resolution parts.
- It has no debugger of its own: no run/stop/step state, breakpoints, key
  handling or command line, and no drawing. `x16host.debugger_view` only
  produces the text such a debugger would show.
- It has no CPU, memory, video or devices; these are supplied by the caller.
- It provides no command to run.

## Running the tests

```
pip install -e ".[test]"
pytest
```