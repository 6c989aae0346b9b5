"""Core services for the e-paper edition viewer."""

__version__ = "0.4.0"
