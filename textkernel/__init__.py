"""A model of a small teaching kernel's file system, console, keyboard, interrupt hardware and program runner."""

__version__ = "0.1.0"