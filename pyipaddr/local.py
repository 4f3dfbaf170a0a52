#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 15:48:21 krylon>
#
# /data/code/python/pyipaddr/local.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.local

(c) 2026 Benjamin Walkenhorst

Resolve addresses to bind to: the wildcard address, an address literal, or
the name of a local network interface.
"""

import socket
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Final, Iterator, Optional, Union

import psutil

from pyipaddr import common
from pyipaddr.common import InvalidArgument, NoSuchDevice
from pyipaddr.literal import parse_literal
from pyipaddr.model import IPAddr, Mode, check_mode, check_port, choose

inet_families: Final[frozenset[socket.AddressFamily]] = \
    frozenset({socket.AF_INET, socket.AF_INET6})


def interface_addresses() -> Iterator[tuple[str, socket.AddressFamily,
                                            Union[IPv4Address, IPv6Address]]]:
    """Yield (name, family, address) for every IP address on a local interface."""
    for name, addrs in psutil.net_if_addrs().items():
        for snic in addrs:
            if snic.family not in inet_families or not snic.address:
                continue
            # Link-local IPv6 addresses come with a zone suffix, e.g. fe80::1%eth0
            host: str = snic.address.split("%", 1)[0]
            yield name, snic.family, ip_address(host)


def resolve_local(name: Optional[str], port: int, mode: Mode = Mode.Unspecified) -> IPAddr:
    """Resolve an address suitable for binding a socket to.

    If <name> is None, return the wildcard address. If it is an address
    literal, return that. Otherwise, look for a local interface of that
    name and return its address.
    """
    log = common.get_logger("local")
    check_port(port)
    check_mode(mode)

    if name is None:
        family: socket.AddressFamily = socket.AF_INET
        if mode in (Mode.ForceIPv6, Mode.PreferIPv6):
            family = socket.AF_INET6
        return IPAddr.wildcard(family, port)

    try:
        return parse_literal(name, port, mode)
    except InvalidArgument:
        pass

    ipv4: Optional[IPAddr] = None
    ipv6: Optional[IPAddr] = None

    for iface, family, host in interface_addresses():
        if iface != name:
            continue
        match family:
            case socket.AF_INET:
                assert ipv4 is None, f"Interface {name} has more than one IPv4 address"
                ipv4 = IPAddr(host, port)
            case socket.AF_INET6:
                assert ipv6 is None, f"Interface {name} has more than one IPv6 address"
                ipv6 = IPAddr(host, port)
        if ipv4 is not None and ipv6 is not None:
            break

    addr: Optional[IPAddr] = choose(mode, ipv4, ipv6)
    if addr is None:
        log.debug("No usable address for interface %s (%s)",
                  name,
                  mode.name)
        raise NoSuchDevice(f"No interface {name} with a {mode.name} address")

    log.debug("Interface %s resolves to %s",
              name,
              addr)
    return addr


# Local Variables: #
# python-indent: 4 #
# End: #
