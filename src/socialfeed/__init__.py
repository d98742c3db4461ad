"""Social feed client service: composer, feed and follow graph over a hosted backend."""

__version__ = "0.1.0"
