"""Bridge between an ID107Plus HR fitness tracker and the host keyboard."""

__version__ = "0.1.0"
