#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 19:40:22 krylon>
#
# /data/code/python/pyipaddr/main.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import asyncio
import pathlib
import sys
from typing import Optional, Sequence

from pyipaddr import common
from pyipaddr.common import IPAddrError
from pyipaddr.config import Config
from pyipaddr.local import resolve_local
from pyipaddr.model import IPAddr, Mode
from pyipaddr.remote import resolve_remote
from pyipaddr.wait import after


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Resolve a name given on the command line and print the result."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="pyipaddr",
        description="Resolve a host name, address, or interface name into an IP address")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store application data in")
    argp.add_argument("-V", "--version",
                      action="version",
                      version=f"{common.AppName} {common.AppVersion}")
    argp.add_argument("-m", "--mode",
                      choices=[m.name for m in Mode],
                      help="Which address family to resolve to")
    argp.add_argument("-4",
                      dest="mode",
                      action="store_const",
                      const=Mode.ForceIPv4.name,
                      help="Resolve to an IPv4 address only")
    argp.add_argument("-6",
                      dest="mode",
                      action="store_const",
                      const=Mode.ForceIPv6.name,
                      help="Resolve to an IPv6 address only")
    argp.add_argument("-l", "--local",
                      action="store_true",
                      help="Resolve an address to bind to rather than one to connect to")
    argp.add_argument("-t", "--timeout",
                      type=float,
                      help="Give up on DNS after this many seconds")
    argp.add_argument("name",
                      nargs="?",
                      help="Host name, address literal, or (with -l) interface name")
    argp.add_argument("port",
                      nargs="?",
                      type=int,
                      default=0,
                      help="The port number")

    args = argp.parse_args(argv)
    common.set_basedir(args.basedir)

    cfg: Config = Config.load()
    cfg.apply()

    mode: Mode = Mode[args.mode] if args.mode is not None else cfg.mode
    timeout: Optional[float] = args.timeout if args.timeout is not None else cfg.timeout

    try:
        addr: IPAddr
        if args.local:
            addr = resolve_local(args.name, args.port, mode)
        elif args.name is None:
            argp.error("a name is required unless -l is given")
        else:
            addr = asyncio.run(resolve_remote(args.name,
                                              args.port,
                                              mode,
                                              after(timeout)))
    except IPAddrError as err:
        print(f"{err.__class__.__name__}: {err}", file=sys.stderr)
        return 1

    print(f"{addr} {addr.port}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

# Local Variables: #
# python-indent: 4 #
# End: #
