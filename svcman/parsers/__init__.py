"""Parsers for native status command output."""

from svcman.parsers.base import StatusParser
from svcman.parsers.launchd import LaunchdStatusParser
from svcman.parsers.systemd import SystemdStatusParser

__all__ = ["LaunchdStatusParser", "StatusParser", "SystemdStatusParser"]
