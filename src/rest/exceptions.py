"""Errors raised while turning Twilio responses into domain records."""


class TwilioOperationError(Exception):
    """Base class for operation-level failures."""


class ResponseParseError(TwilioOperationError):
    """Response body could not be parsed into the operation's result."""


class ShapeError(ResponseParseError):
    """The element wrapping the expected record is missing from the response."""

    def __init__(self, element: str):
        self.element = element
        super().__init__(f"Response has no <{element}> element")
