"""Calibration fixtures loader."""
