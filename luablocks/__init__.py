"""Block and Lua editor for Lua-programmable boards."""

__version__ = "0.1.0"
