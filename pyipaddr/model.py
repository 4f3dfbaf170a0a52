#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 14:37:50 krylon>
#
# /data/code/python/pyipaddr/model.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.model

(c) 2026 Benjamin Walkenhorst

IPAddr is a socket address, tagged with its family. Mode is the policy that
decides which family we pick when a name yields both.
"""

import socket
import struct
from enum import Enum
from ipaddress import IPv4Address, IPv6Address
from typing import Final, Optional, Union

from pyipaddr.common import InvalidArgument

port_max: Final[int] = 0xffff

# sizeof(struct sockaddr_in) and sizeof(struct sockaddr_in6)
sockaddr_in_len: Final[int] = 16
sockaddr_in6_len: Final[int] = 28


class Mode(Enum):
    """Mode controls which address family a name is resolved to."""

    Unspecified = 0
    ForceIPv4 = 1
    ForceIPv6 = 2
    PreferIPv4 = 3
    PreferIPv6 = 4


def check_mode(mode: Mode) -> Mode:
    """Make sure <mode> is a Mode. Anything else is a bug in the caller."""
    if not isinstance(mode, Mode):
        raise TypeError(f"{mode!r} is not a valid Mode")
    return mode


def check_port(port: int) -> int:
    """Raise InvalidArgument unless <port> is a valid port number."""
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= port_max:
        raise InvalidArgument(f"Invalid port number {port!r}")
    return port


class IPAddr:
    """IPAddr is an IPv4 or IPv6 address plus a port."""

    __slots__ = [
        "host",
        "_port",
    ]

    host: Union[IPv4Address, IPv6Address]
    _port: int

    def __init__(self, host: Union[IPv4Address, IPv6Address], port: int = 0) -> None:
        self.host = host
        self.port = port

    @classmethod
    def wildcard(cls, family: socket.AddressFamily, port: int = 0) -> 'IPAddr':
        """Return the wildcard address of the given family."""
        if family == socket.AF_INET6:
            return cls(IPv6Address(0), port)
        return cls(IPv4Address(0), port)

    @property
    def family(self) -> socket.AddressFamily:
        """Return the address family."""
        if self.host.version == 4:
            return socket.AF_INET
        return socket.AF_INET6

    @property
    def length(self) -> int:
        """Return the size of the underlying OS socket address."""
        if self.family == socket.AF_INET:
            return sockaddr_in_len
        return sockaddr_in6_len

    @property
    def port(self) -> int:
        """Return the port number."""
        return self._port

    @port.setter
    def port(self, port: int) -> None:
        self._port = check_port(port)

    @property
    def sockaddr(self) -> Union[tuple[str, int], tuple[str, int, int, int]]:
        """Return the address in the form socket.bind() and socket.connect() expect."""
        if self.family == socket.AF_INET:
            return (str(self.host), self._port)
        return (str(self.host), self._port, 0, 0)

    @property
    def raw(self) -> bytes:
        """Return the packed struct sockaddr_in or sockaddr_in6."""
        if self.family == socket.AF_INET:
            return struct.pack("=H", socket.AF_INET) + \
                struct.pack("!H4s8x", self._port, self.host.packed)
        return struct.pack("=H", socket.AF_INET6) + \
            struct.pack("!HI16sI", self._port, 0, self.host.packed, 0)

    def __str__(self) -> str:
        return str(self.host)

    def __repr__(self) -> str:
        if self.family == socket.AF_INET:
            return f"IPAddr({self.host}:{self._port})"
        return f"IPAddr([{self.host}]:{self._port})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, IPAddr):
            return NotImplemented
        return self.host == other.host and self._port == other._port

    # The port can be changed in place, so an IPAddr must not be used as a
    # dict key or set member.
    __hash__ = None  # type: ignore


def choose(mode: Mode,
           ipv4: Optional[IPAddr],
           ipv6: Optional[IPAddr]) -> Optional[IPAddr]:
    """Pick one of two candidate addresses according to <mode>."""
    match check_mode(mode):
        case Mode.ForceIPv4:
            return ipv4
        case Mode.ForceIPv6:
            return ipv6
        case Mode.Unspecified | Mode.PreferIPv4:
            return ipv4 if ipv4 is not None else ipv6
        case Mode.PreferIPv6:
            return ipv6 if ipv6 is not None else ipv4


# Local Variables: #
# python-indent: 4 #
# End: #
