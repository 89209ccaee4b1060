# This project was developed with assistance from AI tools.
"""Verification workflow error taxonomy.

Every error carries user-facing text in ``str(exc)``. Route handlers map
them onto RFC 7807 responses using ``error_type`` and ``http_status``;
the submitter client rebuilds them from the same ``error_type``.
"""

from db.enums import GroupEvent, GroupStatus


class VerificationError(Exception):
    """Base class for all workflow errors."""

    error_type = "verification_error"
    http_status = 400


class InvalidTransition(VerificationError):
    """The attempted event is illegal from the group's current status.

    Indicates a stale view on the caller's side: refetch, never retry blindly.
    """

    error_type = "invalid_transition"
    http_status = 409

    def __init__(self, event: GroupEvent, current: GroupStatus, message: str | None = None):
        self.event = event
        self.current = current
        super().__init__(
            message
            or f"Cannot {event.value.replace('_', ' ')} a document group that is "
            f"'{current.value}'. Refresh to see the current state."
        )


class StaleWrite(InvalidTransition):
    """Another operator already acted on this group."""

    error_type = "stale_write"

    def __init__(self, event: GroupEvent, current: GroupStatus):
        super().__init__(
            event,
            current,
            f"This was already reviewed (now '{current.value}'). Refreshing.",
        )


class MissingReason(VerificationError):
    """Reject or suspend was requested without a reason."""

    error_type = "missing_reason"
    http_status = 422

    def __init__(self, action: str = "reject"):
        self.action = action
        super().__init__(f"A reason is required to {action}.")


class UploadRejected(VerificationError):
    """Uploaded payload is unacceptable; no state was changed."""

    error_type = "upload_rejected"

    def __init__(self, message: str, http_status: int = 422):
        self.http_status = http_status
        super().__init__(message)


class SubmissionBlocked(VerificationError):
    """The submitter is not allowed to submit at all (deactivated, suspended, unverified)."""

    error_type = "submission_blocked"
    http_status = 403


class ListingNotAllowed(VerificationError):
    """Listing toggle attempted before onboarding completed."""

    error_type = "listing_not_allowed"
    http_status = 409


class ReverificationRequired(VerificationError):
    """Editing a verified property needs explicit confirmation first."""

    error_type = "reverification_required"
    http_status = 409

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = fields
        super().__init__(
            message
            or "Editing "
            + ", ".join(fields)
            + " will send this property back for re-verification and hide its "
            "verified badge until it is approved again. Confirm to proceed."
        )


class UnrecognizedStatus(VerificationError):
    """A status string from the wire does not map onto a known enum value."""

    error_type = "unrecognized_status"
    http_status = 422

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Unrecognized {field} value: {value!r}")


class ChannelUnavailable(VerificationError):
    """Real-time channel could not be (re)established. Non-fatal."""

    error_type = "channel_unavailable"
    http_status = 503


class SubjectNotFound(VerificationError):
    """Partner or property is missing or out of the caller's scope."""

    error_type = "not_found"
    http_status = 404
