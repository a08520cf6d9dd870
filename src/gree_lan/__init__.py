"""Client-side session engine for Gree-protocol air conditioners on the LAN."""

__version__ = "0.3.0"
