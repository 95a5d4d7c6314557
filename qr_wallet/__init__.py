"""Client-side state layer of the QR Wallet app."""

__version__ = "1.0.0"
