"""Scheduling service exceptions."""


class SchedulingError(Exception):
    """Base exception for scheduling errors."""

    pass


class AppointmentNotFoundError(SchedulingError):
    """No appointment with the given id."""

    pass


class InvalidTransitionError(SchedulingError):
    """Requested status change is not allowed."""

    pass


class StaleProfileError(SchedulingError):
    """Profile was modified by someone else since it was read."""

    def __init__(self, provider_id: str, expected: int, actual: int):
        super().__init__(
            f"Profile for {provider_id} is at version {actual}, write was based on {expected}"
        )
        self.provider_id = provider_id
        self.expected = expected
        self.actual = actual


class ProviderNotFoundError(SchedulingError):
    """No availability profile exists for the provider."""

    pass


class SlotConflictError(SchedulingError):
    """The database already holds an active booking for this provider slot."""

    pass
