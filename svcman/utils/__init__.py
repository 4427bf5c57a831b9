"""Utility functions."""

from svcman.utils.format import format_bytes, format_duration
from svcman.utils.output import Output, OutputConfig
from svcman.utils.permissions import check_permissions, is_root

__all__ = ["Output", "OutputConfig", "check_permissions", "format_bytes", "format_duration", "is_root"]
