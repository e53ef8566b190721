"""Error taxonomy shared by the core and the shell.

Storage errors are contained inside the persistence layer. Advisory errors are
raised to the immediate caller. Session errors signal an ordering violation.
"""


class HealthTrackerError(Exception):
    """Base class for all application errors."""


class StorageError(HealthTrackerError):
    """Base class for key/value substrate failures."""


class StorageReadError(StorageError):
    """Stored data is missing, corrupt or does not match its schema."""


class StorageWriteError(StorageError):
    """A value could not be serialized or written (e.g. quota exceeded)."""


class CredentialMissingError(HealthTrackerError):
    """The AI advisory service has no configured credential."""


class AdvisoryError(HealthTrackerError):
    """Base class for AI advisory call failures."""


class AnalysisError(AdvisoryError):
    """Food image analysis failed (network or response parsing)."""


class PlanGenerationError(AdvisoryError):
    """Diet plan generation failed (network or response parsing)."""


class UserNotFoundError(HealthTrackerError):
    """Login was attempted for an email that is not registered."""


class UserAlreadyExistsError(HealthTrackerError):
    """Signup was attempted for an email that is already registered."""


class SessionNotReadyError(HealthTrackerError):
    """A mutation was attempted before the current user's data finished loading."""


class DuplicateEntryError(HealthTrackerError, ValueError):
    """An item with the same identifier already exists in the collection."""
