class AlreadyInFlight(Exception):
    """A generation request is already outstanding for this conversation."""

    def __init__(self, message: str = "A generation request is already in progress"):
        super().__init__(message)


class TemplateConfigError(ValueError):
    """The template catalogue file is missing or malformed."""
