"""Domain exceptions for the Workshop Enrollment Microservice."""


class EnrollmentError(Exception):
    """Base exception for enrollment errors."""

    pass


class WorkshopNotFoundError(EnrollmentError):
    """Raised when a workshop is missing or unpublished."""

    def __init__(self, workshop_id: int) -> None:
        self.workshop_id = workshop_id
        super().__init__(f"Workshop '{workshop_id}' not found")


class EnrollmentNotFoundError(EnrollmentError):
    """Raised when an enrollment is not found."""

    def __init__(self, enrollment_id: str) -> None:
        self.enrollment_id = enrollment_id
        super().__init__(f"Enrollment with ID '{enrollment_id}' not found")


class WaitlistEntryNotFoundError(EnrollmentError):
    """Raised when a waitlist entry is not found."""

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Waitlist entry with ID '{entry_id}' not found")


class EnrollmentValidationError(EnrollmentError):
    """Raised for bad caller input (bad email, missing field, disabled checkout)."""

    pass


class AdmissionDeniedError(EnrollmentError):
    """Raised when capacity rules refuse admission."""

    def __init__(self, workshop_id: int, reason: str, waitlist: bool = False) -> None:
        self.workshop_id = workshop_id
        self.reason = reason
        self.waitlist = waitlist
        super().__init__(reason)


class InvalidStatusTransitionError(EnrollmentError):
    """Raised when a status change would move an entity backwards."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot move from '{current}' to '{target}'")


class CheckoutProviderError(EnrollmentError):
    """Raised when the payment processor rejects a request."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"Payment provider '{provider}' error: {message}")


class UpstreamUnavailableError(EnrollmentError):
    """Raised when retries against an external service are exhausted."""

    def __init__(self, service: str, attempts: int, last_error: Exception) -> None:
        self.service = service
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{service} unavailable after {attempts} attempts: {last_error}"
        )


class WebhookVerificationError(EnrollmentError):
    """Raised when webhook signature verification fails."""

    def __init__(self, reason: str = "Invalid signature") -> None:
        self.reason = reason
        super().__init__(f"Webhook verification failed: {reason}")


class CheckoutMetadataError(EnrollmentError):
    """Raised when checkout session metadata cannot be encoded or decoded."""

    pass


class ClaimTokenInvalidError(EnrollmentError):
    """Raised when a claim link is unknown, expired or already used."""

    def __init__(
        self, reason: str = "This waitlist link has expired or is no longer valid"
    ) -> None:
        super().__init__(reason)


class RefundNotAllowedError(EnrollmentError):
    """Raised when an enrollment cannot be refunded."""

    def __init__(self, enrollment_id: str, reason: str) -> None:
        self.enrollment_id = enrollment_id
        super().__init__(f"Enrollment '{enrollment_id}' cannot be refunded: {reason}")


class DuplicateEnrollmentError(EnrollmentError):
    """Raised when an enrollment for the same checkout session and workshop exists."""

    def __init__(self, session_id: str | None, workshop_id: int) -> None:
        self.session_id = session_id
        self.workshop_id = workshop_id
        super().__init__(
            f"Enrollment for session '{session_id}' and workshop '{workshop_id}' already exists"
        )
