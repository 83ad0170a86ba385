# pylint: disable=missing-docstring
from .component import Component
from .host_loop import HostLoop
