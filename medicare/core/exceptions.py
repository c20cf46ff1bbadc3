from fastapi import HTTPException, status


class AppointmentNotFoundError(HTTPException):
    """No appointment with this id is assigned to the requesting doctor."""

    def __init__(self, detail: str = "Appointment not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AppointmentConflictError(HTTPException):
    def __init__(self, expected_version: int, current_version: int):
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                "Appointment was modified by another request "
                f"(expected version {expected_version}, found {current_version})"
            ),
        )


class NotificationError(Exception):
    """Base class for failures that stop an email before delivery."""


class EmailConfigurationError(NotificationError):
    pass


class MissingRecipientError(NotificationError):
    def __init__(self, message: str = "Patient email not found"):
        super().__init__(message)


class MediaUploadError(Exception):
    pass
