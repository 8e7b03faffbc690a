"""clibench — benchmark a command-line tool across releases."""

__version__ = "0.1.0"
