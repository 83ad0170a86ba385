"""This module contains helper functions that are shared by different modules."""

import re
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from loopqueue.util.configuration import Configuration


def camel_to_snake(camel: str) -> str:
    """ensures that the input string is snake_case"""

    _underscorer1 = re.compile(r"(.)([A-Z][a-z]+)")
    _underscorer2 = re.compile("([a-z0-9])([A-Z])")

    subbed = _underscorer1.sub(r"\1_\2", camel)
    return _underscorer2.sub(r"\1_\2", subbed).lower()


def get_loopqueue_version() -> str:
    """Returns the installed version or the source tree version if not installed."""
    try:
        return version("loopqueue")
    except PackageNotFoundError:
        from loopqueue._version import __version__  # pylint: disable=import-outside-toplevel

        return __version__


def get_versions_string(config: "Configuration" = None) -> str:
    """
    Returns the python and loopqueue version. If a configuration was found then its version
    and sources are added as well
    """
    padding = 25
    version_string = f"{'python version:'.ljust(padding)}{sys.version.split()[0]}"
    version_string += f"\n{'loopqueue version:'.ljust(padding)}{get_loopqueue_version()}"
    if config:
        config_version = (
            f"{config.version}, {', '.join(config.config_paths) if config.config_paths else 'None'}"
        )
    else:
        config_version = "no configuration given, using defaults"
    version_string += f"\n{'configuration version:'.ljust(padding)}{config_version}"
    return version_string
