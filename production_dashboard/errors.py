"""Exceptions raised by store operations. Network failures never surface here."""


class DashboardError(Exception):
    """Base class for user-facing operation errors."""


class ValidationError(DashboardError):
    """Input rejected before any mutation (missing field, off-day, ...)."""


class PermissionDeniedError(DashboardError):
    """The acting user's role does not allow the operation."""


class EntryNotFoundError(DashboardError):
    """No production entry matches the requested id."""

    def __init__(self, entry_id):
        super().__init__(f"Production entry '{entry_id}' not found")
        self.entry_id = entry_id
