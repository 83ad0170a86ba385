"""Version of the loopqueue source tree"""

__version__ = "1.0.0"
