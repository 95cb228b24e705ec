"""Storage-specific exceptions."""


class StorageError(Exception):
    """Base exception for event storage errors."""


class DuplicateEventError(StorageError):
    """Raised when an event with the same iCal UID already exists."""

    def __init__(self, ical_uid: str) -> None:
        """Initialize DuplicateEventError.

        Args:
            ical_uid: The conflicting iCal UID
        """
        super().__init__(f"Event with UID {ical_uid} already exists")
        self.ical_uid = ical_uid
