"""Rater implementations and the rater protocol."""
