"""User-space networking building blocks: wire formats, checksums, sockets, an event loop and TUN adapters."""

__version__ = "0.1.0"