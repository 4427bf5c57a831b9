"""Native service config generators."""

from svcman.generators.plist import generate_plist, split_command
from svcman.generators.unit import generate_unit_file

__all__ = ["generate_plist", "generate_unit_file", "split_command"]
