"""Configuration management for StudioCal."""
