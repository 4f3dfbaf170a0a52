#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 16:55:12 krylon>
#
# /data/code/python/pyipaddr/config.py
# created on 18. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyIPAddr address resolver. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pyipaddr.config

(c) 2026 Benjamin Walkenhorst
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from typing import Final, Optional, Union

from pyipaddr import common
from pyipaddr.model import Mode

default_resolv_conf: Final[str] = "/etc/resolv.conf"
default_hosts: Final[str] = "/etc/hosts"
default_timeout: Final[float] = 5.0


class ConfigError(common.IPAddrError):
    """ConfigError indicates a configuration file we cannot make sense of."""


@dataclass(kw_only=True, slots=True)
class Config:
    """Config holds the user-adjustable settings."""

    mode: Mode = Mode.Unspecified
    timeout: Optional[float] = default_timeout
    resolv_conf: str = default_resolv_conf
    hosts: str = default_hosts
    log_level: int = logging.WARNING

    @classmethod
    def load(cls, path: Optional[Union[str, os.PathLike]] = None) -> 'Config':
        """Read the configuration file. If it does not exist, return the defaults."""
        if path is None:
            path = common.path.config

        try:
            with open(path, "rb") as fh:
                raw = tomllib.load(fh)
        except FileNotFoundError:
            return cls()
        except tomllib.TOMLDecodeError as err:
            raise ConfigError(f"Cannot parse {path}: {err}") from err

        cfg = cls()

        if "mode" in raw:
            try:
                cfg.mode = Mode[raw["mode"]]
            except KeyError as err:
                raise ConfigError(f"Invalid mode {raw['mode']!r} in {path}") from err

        if "timeout" in raw:
            match raw["timeout"]:
                case int() | float() as t if t > 0:
                    cfg.timeout = float(t)
                case 0 | False:
                    cfg.timeout = None
                case _:
                    raise ConfigError(f"Invalid timeout {raw['timeout']!r} in {path}")

        cfg.resolv_conf = str(raw.get("resolv_conf", cfg.resolv_conf))
        cfg.hosts = str(raw.get("hosts", cfg.hosts))

        if "log_level" in raw:
            level = logging.getLevelName(str(raw["log_level"]).upper())
            if not isinstance(level, int):
                raise ConfigError(f"Invalid log level {raw['log_level']!r} in {path}")
            cfg.log_level = level

        return cfg

    def apply(self) -> None:
        """Make the logging settings take effect."""
        common.log_level_tty = self.log_level


# Local Variables: #
# python-indent: 4 #
# End: #
