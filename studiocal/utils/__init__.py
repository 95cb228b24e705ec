"""Utility helpers for StudioCal."""
