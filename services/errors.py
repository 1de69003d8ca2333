class BookingError(Exception):
    """Base for failures reported to the caller as {"error": message}."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(BookingError):
    status_code = 400


class NotFound(BookingError):
    status_code = 404


class Conflict(BookingError):
    status_code = 409


class Unavailable(BookingError):
    status_code = 500
