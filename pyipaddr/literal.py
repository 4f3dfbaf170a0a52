#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 15:10:04 krylon>
#
# /data/code/python/pyipaddr/literal.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.literal

(c) 2026 Benjamin Walkenhorst
"""

from ipaddress import AddressValueError, IPv4Address, IPv6Address
from typing import Optional

from pyipaddr.common import InvalidArgument
from pyipaddr.model import IPAddr, Mode, check_mode, check_port


def _ipv4(text: str, port: int) -> Optional[IPAddr]:
    try:
        return IPAddr(IPv4Address(text), port)
    except AddressValueError:
        return None


def _ipv6(text: str, port: int) -> Optional[IPAddr]:
    # inet_pton does not know about zone indices, so neither do we.
    if "%" in text:
        return None
    try:
        return IPAddr(IPv6Address(text), port)
    except AddressValueError:
        return None


def parse_literal(text: str, port: int, mode: Mode = Mode.Unspecified) -> IPAddr:
    """Parse <text> as a numeric IPv4 or IPv6 address.

    Which families are tried, and in what order, depends on <mode>.
    Raise InvalidArgument if <port> is out of range or <text> is not an
    address literal of an acceptable family.
    """
    check_port(port)
    if text is None or not isinstance(text, str):
        raise InvalidArgument(f"Expected an address literal, got {text!r}")

    addr: Optional[IPAddr] = None

    match check_mode(mode):
        case Mode.ForceIPv4:
            addr = _ipv4(text, port)
        case Mode.ForceIPv6:
            addr = _ipv6(text, port)
        case Mode.Unspecified | Mode.PreferIPv4:
            addr = _ipv4(text, port) or _ipv6(text, port)
        case Mode.PreferIPv6:
            addr = _ipv6(text, port) or _ipv4(text, port)

    if addr is None:
        raise InvalidArgument(f"{text!r} is not a valid {mode.name} address literal")
    return addr


# Local Variables: #
# python-indent: 4 #
# End: #
