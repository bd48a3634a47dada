"""File descriptors on Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from .errors import UnixError
from .file_descriptor import FileDescriptor

CLONEDEV = "/dev/net/tun"
TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16

_IFREQ_FORMAT = "16sH22x"


class TunTapFD(FileDescriptor):
    """Opens an existing persistent TUN (IP datagrams) or TAP (Ethernet frames) device.

    The device must already exist and be accessible to the current user.
    """

    def __init__(self, devname: str, is_tun: bool) -> None:
        try:
            fd = os.open(CLONEDEV, os.O_RDWR | os.O_CLOEXEC)
        except OSError as exc:
            raise UnixError("open", exc.errno or 0) from exc
        super().__init__(fd)

        flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
        name = devname.encode()[: IFNAMSIZ - 1]
        request = struct.pack(_IFREQ_FORMAT, name, flags)
        try:
            fcntl.ioctl(self.fd_num(), TUNSETIFF, request)
        except OSError as exc:
            self.close()
            raise UnixError("ioctl", exc.errno or 0) from exc


class TunFD(TunTapFD):
    """A descriptor on a TUN device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A descriptor on a TAP device."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)