#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 16:21:37 krylon>
#
# /data/code/python/pyipaddr/wait.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.wait

(c) 2026 Benjamin Walkenhorst

Deadlines are absolute points in time on the monotonic clock, or None if
there is no time limit. wait_readable() is the one place where a resolver
gives up control to the event loop.
"""

import asyncio
import time
from typing import Optional

from pyipaddr.common import Timeout

Deadline = Optional[float]


def now() -> float:
    """Return the current time on the clock deadlines are measured against."""
    return time.monotonic()


def after(seconds: Optional[float]) -> Deadline:
    """Return the Deadline <seconds> from now, or None if <seconds> is None."""
    if seconds is None:
        return None
    return now() + seconds


def remaining(deadline: Deadline) -> Optional[float]:
    """Return the number of seconds left until <deadline>, which may be negative."""
    if deadline is None:
        return None
    return deadline - now()


def expired(deadline: Deadline) -> bool:
    """Return True if <deadline> has passed."""
    return deadline is not None and deadline <= now()


def earliest(a: Deadline, b: Deadline) -> Deadline:
    """Return whichever of the two Deadlines comes first."""
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def _wake(ready: asyncio.Future) -> None:
    if not ready.done():
        ready.set_result(None)


async def wait_readable(fd: int, deadline: Deadline) -> None:
    """Suspend the current task until <fd> is readable or <deadline> passes.

    Raise Timeout if the deadline passes first. A deadline that has already
    passed raises Timeout right away, without suspending.
    """
    left: Optional[float] = remaining(deadline)
    if left is not None and left <= 0:
        raise Timeout("Deadline has passed")

    loop = asyncio.get_running_loop()
    ready: asyncio.Future = loop.create_future()
    loop.add_reader(fd, _wake, ready)
    try:
        await asyncio.wait_for(ready, left)
    except TimeoutError:
        raise Timeout(f"Timed out waiting for descriptor {fd}") from None
    finally:
        # The descriptor may be closed and its number reused before we wait again.
        loop.remove_reader(fd)


# Local Variables: #
# python-indent: 4 #
# End: #
