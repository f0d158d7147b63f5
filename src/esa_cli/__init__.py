"""esa-cli: a command-line client for esa.io."""

__version__ = "0.1.0"
