"""StudioCal - iCal export and import for studio booking calendars."""

__version__ = "1.0.0"
__author__ = "New Age Fotografie"
__description__ = "iCal feed export and .ics import for photography session calendars"

__all__ = [
    "__author__",
    "__description__",
    "__version__",
]
