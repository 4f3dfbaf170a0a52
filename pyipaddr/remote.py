#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 19:14:56 krylon>
#
# /data/code/python/pyipaddr/remote.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.remote

(c) 2026 Benjamin Walkenhorst

Resolve addresses to connect to.
"""

import socket
from typing import Awaitable, Callable, Final, Optional

from pyipaddr import common
from pyipaddr.common import AddressNotAvailable, InvalidArgument, Timeout
from pyipaddr.context import Query, ResolverContext
from pyipaddr.literal import parse_literal
from pyipaddr.model import IPAddr, Mode, check_mode, check_port, choose
from pyipaddr.wait import Deadline, after, earliest, expired, wait_readable

Waiter = Callable[[int, Deadline], Awaitable[None]]


async def _suspend(query: Query, deadline: Deadline, wait: Waiter) -> None:
    """Wait for the Query's descriptor until the deadline or until the Query wants to retransmit."""
    limit: Final[Deadline] = earliest(deadline, after(query.timeout()))
    try:
        # Ask for the descriptor every time, the Query may have opened a new one.
        await wait(query.fileno(), limit)
    except Timeout:
        if expired(deadline):
            raise


async def resolve_remote(name: str,
                         port: int,
                         mode: Mode = Mode.Unspecified,
                         deadline: Deadline = None,
                         ctx: Optional[ResolverContext] = None,
                         wait: Waiter = wait_readable) -> IPAddr:
    """Resolve <name> into an address to connect to.

    <name> may be an address literal or a host name. Host names are looked
    up in the hosts file and via DNS; if both IPv4 and IPv6 addresses turn
    up, <mode> decides which one we return.

    If <deadline> passes before DNS has answered, raise Timeout. If <ctx> is
    None, use the process-wide ResolverContext.
    """
    log = common.get_logger("remote")
    check_port(port)
    check_mode(mode)

    try:
        return parse_literal(name, port, mode)
    except InvalidArgument:
        if not isinstance(name, str):
            raise

    if ctx is None:
        ctx = ResolverContext.default()

    ipv4: Optional[IPAddr] = None
    ipv6: Optional[IPAddr] = None

    with ctx.open(name, port) as query:
        # A hosts table hit needs no network, so the deadline does not apply.
        if not query.found and expired(deadline):
            log.debug("Deadline passed before resolving %s", name)
            raise Timeout(f"Deadline passed before resolving {name}")

        while ipv4 is None or ipv6 is None:
            try:
                entry: Optional[IPAddr] = query.next_entry()
            except BlockingIOError:
                try:
                    await _suspend(query, deadline, wait)
                except Timeout:
                    log.debug("Timed out resolving %s", name)
                    raise
                continue

            if entry is None:
                break

            match entry.family:
                case socket.AF_INET if ipv4 is None:
                    ipv4 = entry
                case socket.AF_INET6 if ipv6 is None:
                    ipv6 = entry

    addr: Optional[IPAddr] = choose(mode, ipv4, ipv6)
    if addr is None:
        log.debug("No %s address found for %s",
                  mode.name,
                  name)
        raise AddressNotAvailable(f"Cannot resolve {name} to a {mode.name} address")

    addr.port = port
    log.debug("%s resolves to %r", name, addr)
    return addr


# Local Variables: #
# python-indent: 4 #
# End: #
