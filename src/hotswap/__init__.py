"""Hotswap - periodic reloading of changed Python modules in a running process."""

__version__ = "0.1.0"
