"""lxcctl - Wrapper around the lxc utilities to make managing containers easier."""

__version__ = "0.2.0"
