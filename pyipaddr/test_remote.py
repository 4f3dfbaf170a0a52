#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 22:05:31 krylon>
#
# /data/code/python/pyipaddr/test_remote.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.test_remote

(c) 2026 Benjamin Walkenhorst
"""

import asyncio
import os
import shutil
import socket
import unittest
from datetime import datetime
from ipaddress import ip_address
from typing import Final, Optional, Union

import dns.message
import dns.name
import dns.nameserver
import dns.rcode
import dns.rrset
from dns.rdatatype import RdataType
from dns.resolver import Resolver

from pyipaddr import common
from pyipaddr.common import AddressNotAvailable, InvalidArgument, Timeout
from pyipaddr.context import ResolverContext
from pyipaddr.model import IPAddr, Mode
from pyipaddr.remote import resolve_remote
from pyipaddr.wait import Deadline, after, now

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_remote_%Y%m%d_%H%M%S"))

records: Final[dict[tuple[str, RdataType], list[str]]] = {
    ("dual.example.test.", RdataType.A): ["192.0.2.1", "192.0.2.2"],
    ("dual.example.test.", RdataType.AAAA): ["2001:db8::1"],
    ("v4only.example.test.", RdataType.A): ["192.0.2.3"],
    ("v6only.example.test.", RdataType.AAAA): ["2001:db8::3"],
}


class FakeDNS(asyncio.DatagramProtocol):
    """A tiny authoritative server that answers from a fixed table."""

    def __init__(self, table: dict[tuple[str, RdataType], list[str]], silent: bool = False) -> None:
        self.table = table
        self.silent = silent
        self.queries: int = 0
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr) -> None:
        self.queries += 1
        if self.silent:
            return

        q = dns.message.from_wire(data)
        resp = dns.message.make_response(q)
        question = q.question[0]
        name: str = question.name.to_text()
        key = (name, question.rdtype)

        if key in self.table:
            resp.answer.append(dns.rrset.from_text(question.name,
                                                   300,
                                                   "IN",
                                                   question.rdtype,
                                                   *self.table[key]))
        elif not any(n == name for n, _ in self.table):
            resp.set_rcode(dns.rcode.NXDOMAIN)

        self.transport.sendto(resp.to_wire(), addr)


async def no_wait(fd: int, deadline: Deadline) -> None:
    """A wait primitive that must never be called."""
    raise AssertionError(f"Unexpected wait on {fd} (deadline {deadline})")


class FakeQuery:
    """FakeQuery plays back a script of entries and 'try again' signals."""

    def __init__(self, script: list[Union[IPAddr, type[BlockingIOError]]]) -> None:
        self.script = script
        self.calls: int = 0
        self.closed: bool = False
        self.found: bool = False

    def __enter__(self) -> 'FakeQuery':
        return self

    def __exit__(self, _ex_type, _ex_val, _traceback) -> None:
        self.close()

    def next_entry(self) -> Optional[IPAddr]:
        self.calls += 1
        if len(self.script) == 0:
            return None
        step = self.script.pop(0)
        if step is BlockingIOError:
            raise BlockingIOError()
        return step

    def fileno(self) -> int:
        return 42

    def timeout(self) -> float:
        return 60.0

    def close(self) -> None:
        self.closed = True


class FakeContext:
    """FakeContext hands out one prepared FakeQuery."""

    def __init__(self, query: FakeQuery) -> None:
        self.query = query

    def open(self, _host: str, _port: int) -> FakeQuery:
        return self.query


class TestResolveRemoteScripted(unittest.IsolatedAsyncioTestCase):
    """Test the resolver loop against scripted Queries."""

    v4a: Final[IPAddr] = IPAddr(ip_address("192.0.2.10"))
    v4b: Final[IPAddr] = IPAddr(ip_address("192.0.2.11"))
    v6a: Final[IPAddr] = IPAddr(ip_address("2001:db8::10"))
    v6b: Final[IPAddr] = IPAddr(ip_address("2001:db8::11"))

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    async def test_01_literal(self) -> None:
        """Literals come back right away, without DNS."""
        addr: Final[IPAddr] = await resolve_remote("127.0.0.1", 80, Mode.Unspecified, None,
                                                   wait=no_wait)
        self.assertEqual(addr.family, socket.AF_INET)
        self.assertEqual(str(addr), "127.0.0.1")
        self.assertEqual(addr.port, 80)

    async def test_02_short_circuit(self) -> None:
        """Stop asking once we have one address of each family."""
        waits: list[int] = []

        async def waiter(fd: int, _deadline: Deadline) -> None:
            waits.append(fd)

        q: Final[FakeQuery] = FakeQuery([BlockingIOError, self.v4a, self.v4b,
                                         BlockingIOError, self.v6a, self.v6b])
        addr: Final[IPAddr] = await resolve_remote("whatever", 8080, Mode.PreferIPv6, None,
                                                   FakeContext(q), waiter)  # type: ignore

        self.assertEqual(addr.host, self.v6a.host)
        self.assertEqual(addr.port, 8080)
        self.assertEqual(q.calls, 5)
        self.assertEqual(waits, [42, 42])
        self.assertTrue(q.closed)

    async def test_03_not_available(self) -> None:
        """No entry of an acceptable family means AddressNotAvailable."""
        q: Final[FakeQuery] = FakeQuery([self.v4a, self.v4b])
        with self.assertRaises(AddressNotAvailable):
            await resolve_remote("whatever", 80, Mode.ForceIPv6, None,
                                 FakeContext(q), no_wait)  # type: ignore
        self.assertTrue(q.closed)

    async def test_04_timeout(self) -> None:
        """A wait that runs into the deadline is a Timeout, and the Query is closed."""
        async def waiter(_fd: int, _deadline: Deadline) -> None:
            await asyncio.sleep(0.1)
            raise Timeout("Deadline has passed")

        q: Final[FakeQuery] = FakeQuery([BlockingIOError, self.v4a])
        with self.assertRaises(Timeout):
            await resolve_remote("whatever", 80, Mode.Unspecified, after(0.05),
                                 FakeContext(q), waiter)  # type: ignore
        self.assertTrue(q.closed)
        self.assertEqual(q.calls, 1)

    async def test_05_retry_before_deadline(self) -> None:
        """A wait that ends early (for a retransmit) is not a Timeout."""
        async def waiter(_fd: int, _deadline: Deadline) -> None:
            raise Timeout("Retransmit")

        q: Final[FakeQuery] = FakeQuery([BlockingIOError, BlockingIOError, self.v4a])
        addr: Final[IPAddr] = await resolve_remote("whatever", 80, Mode.Unspecified, after(60),
                                                   FakeContext(q), waiter)  # type: ignore
        self.assertEqual(addr.host, self.v4a.host)
        self.assertTrue(q.closed)

    async def test_06_wait_error(self) -> None:
        """Errors from the wait primitive are passed on."""
        async def waiter(_fd: int, _deadline: Deadline) -> None:
            raise OSError("Bad file descriptor")

        q: Final[FakeQuery] = FakeQuery([BlockingIOError, self.v4a])
        with self.assertRaises(OSError):
            await resolve_remote("whatever", 80, Mode.Unspecified, None,
                                 FakeContext(q), waiter)  # type: ignore
        self.assertTrue(q.closed)

    async def test_07_bad_port(self) -> None:
        """Invalid ports are rejected before anything else happens."""
        for p in (-1, 65536):
            with self.assertRaises(InvalidArgument):
                await resolve_remote("www.example.test", p, wait=no_wait)

    async def test_08_past_deadline(self) -> None:
        """With the deadline already gone, the Query is not even asked."""
        q: Final[FakeQuery] = FakeQuery([self.v4a])
        with self.assertRaises(Timeout):
            await resolve_remote("whatever", 80, Mode.Unspecified, now() - 1.0,
                                 FakeContext(q), no_wait)  # type: ignore
        self.assertEqual(q.calls, 0)
        self.assertTrue(q.closed)

        # Unless the answer is already there.
        known: Final[FakeQuery] = FakeQuery([self.v4a])
        known.found = True
        addr: Final[IPAddr] = await resolve_remote("whatever", 80, Mode.Unspecified, now() - 1.0,
                                                   FakeContext(known), no_wait)  # type: ignore
        self.assertEqual(addr.host, self.v4a.host)
        self.assertTrue(known.closed)


class TestResolveRemoteDNS(unittest.IsolatedAsyncioTestCase):
    """Test the resolver against a DNS server running in the same event loop."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    async def start_server(self, silent: bool = False) -> tuple[asyncio.DatagramTransport,
                                                                FakeDNS,
                                                                int]:
        """Start a FakeDNS server on the loopback interface."""
        loop = asyncio.get_running_loop()
        transport, proto = await loop.create_datagram_endpoint(
            lambda: FakeDNS(records, silent),
            local_addr=("127.0.0.1", 0))
        self.addCleanup(transport.close)
        port: int = transport.get_extra_info("sockname")[1]
        return transport, proto, port

    def make_context(self, port: int, hosts=None) -> ResolverContext:
        """Create a ResolverContext that talks to our server only."""
        res = Resolver(configure=False)
        res.timeout = 0.5
        res.port = port
        res.nameserver_ports = {"127.0.0.1": port}
        res.nameservers = ["127.0.0.1"]
        return ResolverContext(resolver=res, hosts=hosts or {})

    async def test_01_modes(self) -> None:
        """Resolve names with different families available under different modes."""
        _, _, port = await self.start_server()
        ctx: Final[ResolverContext] = self.make_context(port)

        test_cases: Final[list[tuple[str, Mode, str]]] = [
            ("dual.example.test.", Mode.Unspecified, "192.0.2.1"),
            ("dual.example.test.", Mode.PreferIPv4, "192.0.2.1"),
            ("dual.example.test.", Mode.PreferIPv6, "2001:db8::1"),
            ("dual.example.test.", Mode.ForceIPv4, "192.0.2.1"),
            ("dual.example.test.", Mode.ForceIPv6, "2001:db8::1"),
            ("v4only.example.test.", Mode.PreferIPv6, "192.0.2.3"),
            ("v6only.example.test.", Mode.PreferIPv4, "2001:db8::3"),
            ("v6only.example.test.", Mode.Unspecified, "2001:db8::3"),
        ]

        for c in test_cases:
            addr: IPAddr = await resolve_remote(c[0], 443, c[1], after(5), ctx)
            self.assertEqual(str(addr), c[2], f"{c[0]} / {c[1].name}")
            self.assertEqual(addr.port, 443)

    async def test_02_not_available(self) -> None:
        """Missing families and unknown names give AddressNotAvailable."""
        _, _, port = await self.start_server()
        ctx: Final[ResolverContext] = self.make_context(port)

        test_cases: Final[list[tuple[str, Mode]]] = [
            ("v4only.example.test.", Mode.ForceIPv6),
            ("v6only.example.test.", Mode.ForceIPv4),
            ("nonexistent.example.test.", Mode.Unspecified),
        ]

        for c in test_cases:
            with self.assertRaises(AddressNotAvailable, msg=f"{c[0]} / {c[1].name}"):
                await resolve_remote(c[0], 80, c[1], after(5), ctx)

    async def test_03_hosts(self) -> None:
        """Names in the hosts table never reach the server."""
        _, proto, port = await self.start_server()
        ctx: Final[ResolverContext] = self.make_context(
            port,
            {"printer": [ip_address("192.0.2.99")]})

        addr: Final[IPAddr] = await resolve_remote("printer", 631, Mode.Unspecified, None, ctx)
        self.assertEqual(str(addr), "192.0.2.99")
        self.assertEqual(addr.port, 631)
        self.assertEqual(proto.queries, 0)

        late: Final[IPAddr] = await resolve_remote("printer", 631, Mode.Unspecified,
                                                   now() - 1.0, ctx)
        self.assertEqual(late, addr)

    async def test_04_deadline(self) -> None:
        """A server that never answers runs into the deadline."""
        _, _, port = await self.start_server(silent=True)
        ctx: Final[ResolverContext] = self.make_context(port)

        started: Final[float] = now()
        with self.assertRaises(Timeout):
            await resolve_remote("dual.example.test.", 80, Mode.Unspecified, after(0.3), ctx)
        self.assertLess(now() - started, 2.0)

    async def test_05_past_deadline(self) -> None:
        """A deadline in the past fails before anything is sent."""
        _, proto, port = await self.start_server()
        ctx: Final[ResolverContext] = self.make_context(port)

        started: Final[float] = now()
        with self.assertRaises(Timeout):
            await resolve_remote("nonexistent.invalid.", 80, Mode.Unspecified, now() - 1.0, ctx)
        self.assertLess(now() - started, 0.5)
        self.assertEqual(proto.queries, 0)

    async def test_06_next_server(self) -> None:
        """If the first server keeps quiet, we ask the next one."""
        _, silent, silent_port = await self.start_server(silent=True)
        _, _, port = await self.start_server()

        res = Resolver(configure=False)
        res.timeout = 0.2
        res.nameservers = [
            dns.nameserver.Do53Nameserver("127.0.0.1", silent_port),
            dns.nameserver.Do53Nameserver("127.0.0.1", port),
        ]
        ctx: Final[ResolverContext] = ResolverContext(resolver=res)
        self.assertEqual(len(ctx.hints), 2)

        addr: Final[IPAddr] = await resolve_remote("v4only.example.test.", 25, Mode.Unspecified,
                                                   after(5), ctx)
        self.assertEqual(str(addr), "192.0.2.3")
        self.assertGreater(silent.queries, 0)

    async def test_07_long_name(self) -> None:
        """A search domain too long to append to the name is left out."""
        _, proto, port = await self.start_server()
        ctx: Final[ResolverContext] = self.make_context(port)
        ctx.resolver.search = [dns.name.from_text(("a" * 60) + ".example.com.")]

        with self.assertRaises(AddressNotAvailable):
            await resolve_remote(".".join(["b" * 60] * 3), 80, Mode.Unspecified, after(5), ctx)
        # A and AAAA for the name itself, nothing else.
        self.assertEqual(proto.queries, 2)


# Local Variables: #
# python-indent: 4 #
# End: #
