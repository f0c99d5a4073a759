"""Exception types surfaced to callers as human-readable messages"""

from typing import Optional


class RequestError(Exception):
    """Base class for failures of a remote generation request"""


class MissingCredentialError(RequestError):
    """No API key configured; raised before any network call"""

    def __init__(self, message: str = "API key not set. Add your API key before generating contracts."):
        super().__init__(message)


class RequestTimeoutError(RequestError):
    """The remote call did not finish within its timeout window"""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g} seconds. Please try again.")


class HttpError(RequestError):
    """The remote endpoint answered with a non-success status"""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message or f"API request failed with status {status}"
        super().__init__(self.message)


class MalformedResponseError(RequestError):
    """The response body could not be parsed as the expected JSON"""


class NoContentReturnedError(RequestError):
    """The model answered without any text"""

    def __init__(self, message: str = "The AI service returned no content."):
        super().__init__(message)


class TemplateNotFoundError(ValueError):
    """Unknown contract type identifier"""

    def __init__(self, contract_type: str):
        self.contract_type = contract_type
        super().__init__(f"Template not found: {contract_type}")


class SessionError(Exception):
    """Base class for drafting-session errors"""


class InvalidTransitionError(SessionError):
    """The requested action is not allowed in the current step"""


class SessionBusyError(SessionError):
    """Another request for this document is still in flight"""

    def __init__(self, message: str = "A request for this document is already in progress."):
        super().__init__(message)


class IncompleteFormError(SessionError):
    """Required form fields are missing"""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")
