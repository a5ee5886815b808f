class ServiceError(Exception):
    """Base for failures that map onto an HTTP status and an ``{"error": ...}`` body."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class StoreError(ServiceError):
    """Database failure or timeout. The cause is logged, never returned."""

    def __init__(self, message: str = "database error") -> None:
        super().__init__(message)


class UpstreamError(ServiceError):
    pass
