"""Host-side building blocks for a Commander X16 emulator: Latin-9 text, image files,
the I2C bus and mouse, host-filesystem path resolution and debugger display text."""

__version__ = "0.1.0"