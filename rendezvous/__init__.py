"""Two-party rendezvous relay for exchanging opaque negotiation messages."""

__version__ = "0.1.0"
