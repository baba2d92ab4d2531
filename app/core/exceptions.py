"""
Custom exception classes for the Lazy Thumbnails application.
These exceptions provide meaningful error messages and HTTP status codes.
"""


class ThumbnailsException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AttachmentNotFoundException(ThumbnailsException):
    """Raised when an attachment is not found."""

    def __init__(self, attachment_id: int):
        super().__init__(
            message=f"Attachment not found: {attachment_id}",
            status_code=404
        )
        self.attachment_id = attachment_id


class ValidationException(ThumbnailsException):
    """Raised when request data validation fails."""

    def __init__(self, message: str):
        super().__init__(
            message=f"Validation error: {message}",
            status_code=400  # Bad Request
        )


class FileOperationException(ThumbnailsException):
    """Raised when file operations fail."""

    def __init__(self, operation: str, path: str, error: str):
        super().__init__(
            message=f"File {operation} failed for {path}: {error}",
            status_code=500
        )
        self.operation = operation
        self.path = path
        self.error = error


class ImageProcessingException(ThumbnailsException):
    """Raised when an image cannot be decoded or resized."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Image processing failed for {path}: {error}",
            status_code=422  # Unprocessable Entity
        )
        self.path = path
        self.error = error
