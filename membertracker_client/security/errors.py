# membertracker_client/security/errors.py


class ValidationFailure(ValueError):
    """Raised when user input fails a syntactic check before any backend call.

    `field` names the offending input so a form can highlight it.
    """

    def __init__(self, field: str, message: str = "Invalid value."):
        self.field = field
        self.message = message
        super().__init__(message)
