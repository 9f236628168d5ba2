"""Business errors raised by the conversion services, each with an HTTP status."""


class ConversionError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ConversionError):
    status_code = 400


class Unauthorized(ConversionError):
    status_code = 401


class NotFound(ConversionError):
    status_code = 404


class InternalError(ConversionError):
    status_code = 500
