"""Error taxonomy shared by the service, providers and API layer."""


class TutorXError(Exception):
    """Base class for all application errors."""


class AuthFailure(TutorXError):
    """Login or registration failed.

    The message never distinguishes an unknown account from a wrong password.
    """

    def __init__(self, message: str = "Authentication failed. Please check your credentials."):
        super().__init__(message)


class EntitlementDenied(TutorXError):
    """The payment/entitlement check rejected a tier upgrade."""

    def __init__(self, message: str = "Entitlement upgrade failed."):
        super().__init__(message)


class GenerationFailed(TutorXError):
    """An AI provider call failed or returned unusable content."""


class QuotaExceeded(TutorXError):
    """The free-tier daily question allowance is used up."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"You have reached your daily limit of {limit} questions. "
            "Service will be restored in 24 hours, or upgrade now for unlimited access."
        )


class FeatureLocked(TutorXError):
    """The current tier does not include the requested feature."""

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"'{feature}' requires a PREMIUM or PRO subscription.")


class PersistenceError(TutorXError):
    """The profile store failed to load or save a profile."""


class InvalidRequest(TutorXError):
    """The caller sent input the operation cannot accept."""


class NoActiveLesson(TutorXError):
    """A lesson-bound operation was requested before any lesson was started."""

    def __init__(self) -> None:
        super().__init__("No active lesson. Start a lesson first.")
