"""Static site builder for the Developmental blog."""

__version__ = "0.1.0"
