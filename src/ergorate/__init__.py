"""ergorate — ergonomic rating, rater consensus and improvement planning."""

__version__ = "0.1.0"
