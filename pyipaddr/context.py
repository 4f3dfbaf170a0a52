#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 18:32:40 krylon>
#
# /data/code/python/pyipaddr/context.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.context

(c) 2026 Benjamin Walkenhorst

A ResolverContext holds what we know about the system's DNS setup: the
resolver configuration, the hosts file, and the nameservers to ask.
A Query is one lookup of a host name against a ResolverContext. It never
blocks: when there is nothing to report, yet, next_entry() raises
BlockingIOError, and the caller is expected to wait for the Query's
descriptor to become readable.
"""

import logging
import socket
from collections import deque
from dataclasses import dataclass, field
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Final, Iterable, Optional, Union

import dns.entropy
import dns.inet
import dns.message
import dns.name
import dns.nameserver
import dns.rcode
from dns.exception import DNSException
from dns.rdatatype import RdataType
from dns.resolver import Resolver

from pyipaddr import common, wait
from pyipaddr.common import InvalidArgument
from pyipaddr.config import Config
from pyipaddr.model import IPAddr

max_udp_size: Final[int] = 65535
default_attempts: Final[int] = 2

HostsTable = dict[str, list[Union[IPv4Address, IPv6Address]]]


def parse_hosts(lines: Iterable[str]) -> HostsTable:
    """Parse lines in the format of /etc/hosts into a table of names to addresses."""
    table: HostsTable = {}

    for line in lines:
        line = line.split("#", 1)[0].strip()
        fields: list[str] = line.split()
        if len(fields) < 2:
            continue
        try:
            addr = ip_address(fields[0].split("%", 1)[0])
        except ValueError:
            continue
        for name in fields[1:]:
            entries = table.setdefault(name.rstrip(".").lower(), [])
            if addr not in entries:
                entries.append(addr)

    return table


def read_hosts(path: str) -> HostsTable:
    """Read a hosts file. A missing file is the same as an empty one."""
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as fh:
            return parse_hosts(fh)
    except FileNotFoundError:
        return {}


def nameserver_hints(res: Resolver) -> list[tuple[str, int]]:
    """Return the (address, port) pairs of the plain DNS nameservers <res> knows."""
    hints: list[tuple[str, int]] = []
    for ns in res.nameservers:
        match ns:
            case dns.nameserver.Do53Nameserver():
                hints.append((ns.address, ns.port))
            case str() if dns.inet.is_address(ns):
                hints.append((ns, res.nameserver_ports.get(ns, res.port)))
    return hints


_default: Optional['ResolverContext'] = None  # pylint: disable-msg=C0103


@dataclass(kw_only=True, slots=True)
class ResolverContext:
    """ResolverContext bundles the DNS configuration, the hosts table, and the hints.

    It is read-only once constructed, so any number of Queries may share it.
    """

    resolver: Resolver
    hosts: HostsTable = field(default_factory=dict)
    hints: list[tuple[str, int]] = field(init=False)
    attempts: int = default_attempts
    log: logging.Logger = field(default_factory=lambda: common.get_logger("context"))

    def __post_init__(self) -> None:
        self.hints = nameserver_hints(self.resolver)
        if len(self.hints) == 0:
            self.log.warning("No usable nameservers are configured.")

    @classmethod
    def local(cls,
              resolv_conf: str = "/etc/resolv.conf",
              hosts_file: str = "/etc/hosts") -> 'ResolverContext':
        """Create a ResolverContext from the system's configuration files."""
        log = common.get_logger("context")
        try:
            res = Resolver(filename=resolv_conf, configure=True)
        except DNSException as err:
            log.critical("Cannot load resolver configuration from %s: %s",
                         resolv_conf,
                         err)
            raise

        hosts: Final[HostsTable] = read_hosts(hosts_file)
        log.debug("Loaded %d names from %s",
                  len(hosts),
                  hosts_file)
        return cls(resolver=res, hosts=hosts)

    @classmethod
    def default(cls) -> 'ResolverContext':
        """Return the process-wide ResolverContext, creating it on first use.

        Creating it is not synchronized. In a multi-threaded program, either
        call this once before the threads get going, or pass each thread its
        own ResolverContext.
        """
        global _default  # pylint: disable-msg=W0603
        if _default is None:
            cfg: Final[Config] = Config.load()
            _default = cls.local(cfg.resolv_conf, cfg.hosts)
        return _default

    def search_names(self, host: str) -> list[dns.name.Name]:
        """Return the names to query for <host>, in the order they should be tried."""
        try:
            name: dns.name.Name = dns.name.from_text(host, None)
        except DNSException as err:
            raise InvalidArgument(f"{host!r} is not a valid host name: {err}") from err

        if name.is_absolute():
            return [name]
        if len(name) == 0:
            raise InvalidArgument("Host name is empty")
        try:
            absolute: Final[dns.name.Name] = name.concatenate(dns.name.root)
        except dns.name.NameTooLong as err:
            raise InvalidArgument(f"{host!r} is too long for a host name") from err

        suffixes: list[dns.name.Name] = list(self.resolver.search)
        if len(suffixes) == 0 and self.resolver.domain != dns.name.root:
            suffixes = [self.resolver.domain]

        ndots: int = self.resolver.ndots if self.resolver.ndots is not None else 1
        candidates: list[dns.name.Name] = []
        for s in suffixes:
            try:
                candidates.append(name.concatenate(s))
            except dns.name.NameTooLong:
                self.log.debug("Skip search domain %s for %s: name too long",
                               s,
                               host)

        if len(name) - 1 >= ndots:
            return [absolute] + candidates
        return candidates + [absolute]

    def open(self, host: str, port: int) -> 'Query':
        """Start looking up <host>."""
        return Query(ctx=self, host=host, port=port)


@dataclass(kw_only=True, slots=True)
class Query:  # pylint: disable-msg=R0902
    """Query is an asynchronous lookup of the A and AAAA records of a host name."""

    ctx: ResolverContext
    host: str
    port: int
    log: logging.Logger = field(default_factory=lambda: common.get_logger("query"))
    sock: Optional[socket.socket] = None
    entries: deque[IPAddr] = field(default_factory=deque)
    qnames: deque[dns.name.Name] = field(default_factory=deque)
    outstanding: dict[int, dns.message.Message] = field(default_factory=dict)
    found: bool = False
    server: int = 0
    tries: int = 0
    sent: float = 0.0
    closed: bool = False

    def __post_init__(self) -> None:
        key: Final[str] = self.host.rstrip(".").lower()
        if key in self.ctx.hosts:
            for host in self.ctx.hosts[key]:
                self.entries.append(IPAddr(host, self.port))
            self.found = True
            self.log.debug("Found %s in hosts table: %s",
                           self.host,
                           ", ".join(str(x) for x in self.entries))
            return

        self.qnames.extend(self.ctx.search_names(self.host))

    def __enter__(self) -> 'Query':
        return self

    def __exit__(self, _ex_type, _ex_val, _traceback) -> None:
        self.close()

    def fileno(self) -> int:
        """Return the descriptor to wait on. It may change after every call to next_entry()."""
        if self.sock is None:
            raise ValueError("Query has no socket to wait on")
        return self.sock.fileno()

    def timeout(self) -> float:
        """Return the number of seconds until we retransmit our questions."""
        return max(0.0, self.sent + self.ctx.resolver.timeout - wait.now())

    def close(self) -> None:
        """Release the Query's socket. Calling this more than once is harmless."""
        self._disconnect()
        self.outstanding.clear()
        self.closed = True

    def next_entry(self) -> Optional[IPAddr]:
        """Return the next address, or None if there are no more.

        Raise BlockingIOError if we have to wait for a response.
        """
        if self.closed:
            raise ValueError("Query is closed")

        while len(self.entries) == 0:
            if len(self.outstanding) == 0:
                if self.found or len(self.qnames) == 0 or len(self.ctx.hints) == 0:
                    return None
                self._ask(self.qnames.popleft())
            elif wait.now() - self.sent >= self.ctx.resolver.timeout:
                self._retransmit()
            else:
                self._receive()

        return self.entries.popleft()

    def _ask(self, qname: dns.name.Name) -> None:
        self.log.debug("Query %s for %s",
                       self.ctx.hints[self.server][0],
                       qname)
        self.tries = 0
        for rdtype in (RdataType.A, RdataType.AAAA):
            q = dns.message.make_query(qname, rdtype)
            while q.id in self.outstanding:
                q.id = dns.entropy.random_16()
            self.outstanding[q.id] = q
        self._transmit()

    def _connect(self) -> None:
        host, port = self.ctx.hints[self.server]
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            sock.setblocking(False)
            sock.connect((host, port))
        except OSError:
            sock.close()
            raise
        self.sock = sock

    def _disconnect(self) -> None:
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def _transmit(self) -> None:
        """Send all outstanding questions to the current server."""
        self.tries += 1
        self.sent = wait.now()
        try:
            if self.sock is None:
                self._connect()
            for q in self.outstanding.values():
                self.sock.send(q.to_wire())
        except OSError as err:
            self.log.debug("Cannot send query to %s: %s",
                           self.ctx.hints[self.server][0],
                           err)
            self._disconnect()
            self._fail()

    def _fail(self) -> None:
        """Give up on the current server right away."""
        self.sent = float("-inf")

    def _retransmit(self) -> None:
        if self.tries >= len(self.ctx.hints) * self.ctx.attempts:
            self.log.debug("No answer from any nameserver after %d tries, giving up.",
                           self.tries)
            self._disconnect()
            self.outstanding.clear()
            return

        self.server = (self.server + 1) % len(self.ctx.hints)
        self._disconnect()
        self._transmit()

    def _receive(self) -> None:
        if self.sock is None:
            self._fail()
            return

        try:
            wire: bytes = self.sock.recv(max_udp_size)
        except BlockingIOError:
            raise
        except OSError as err:
            # E.g. an ICMP port unreachable in response to our query
            self.log.debug("Error receiving from %s: %s",
                           self.ctx.hints[self.server][0],
                           err)
            self._fail()
            return

        try:
            msg = dns.message.from_wire(wire)
        except DNSException as err:
            self.log.debug("Discard malformed response: %s", err)
            return

        q: Optional[dns.message.Message] = self.outstanding.get(msg.id)
        if q is None or not q.is_response(msg):
            self.log.debug("Discard unexpected response (id %d)", msg.id)
            return

        rcode = msg.rcode()
        if rcode not in (dns.rcode.NOERROR, dns.rcode.NXDOMAIN):
            self.log.debug("%s answered %s, trying the next server.",
                           self.ctx.hints[self.server][0],
                           dns.rcode.to_text(rcode))
            self._fail()
            return

        del self.outstanding[msg.id]

        for rrset in msg.answer:
            if rrset.rdtype not in (RdataType.A, RdataType.AAAA):
                continue
            for rd in rrset:
                self.entries.append(IPAddr(ip_address(rd.address), self.port))
                self.found = True


# Local Variables: #
# python-indent: 4 #
# End: #
