"""
Error taxonomy shared by the storage, reporting and API layers.

Every failure that reaches a caller is one of these kinds. Collaborator
exceptions (filesystem, HTTP, JSON) are translated into them where the
collaborator is called, so provider-specific shapes never leak.
"""

from typing import Any, Dict, Optional


class MoodMirrorError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    report_data: Optional[Dict[str, Any]] = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> Dict[str, Any]:
        """Body returned to the client."""
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.report_data is not None:
            body["reportData"] = self.report_data
        return body


class Unauthorized(MoodMirrorError):
    """Missing or invalid bearer credential."""

    status_code = 401


class ValidationError(MoodMirrorError):
    """A write is missing a required field or carries an invalid value."""

    status_code = 400


class NotFound(MoodMirrorError):
    status_code = 404


class StoreUnavailable(MoodMirrorError):
    """The key-value store could not be reached or returned unreadable data."""

    status_code = 500


class MissingRecipient(MoodMirrorError):
    """No guardian email is configured on the elder profile."""

    status_code = 400

    def __init__(
        self,
        message: str = "Guardian email not set. Please update your profile with guardian email address.",
        report_data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.report_data = report_data


class DeliveryFailed(MoodMirrorError):
    """
    The email provider rejected the message or could not be reached.

    Carries the computed report so the caller can still show the numbers
    and offer a manual retry.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        report_data: Optional[Dict[str, Any]] = None,
        provider_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.report_data = report_data
        self.provider_message = provider_message
