"""FoodHub client exceptions and GraphQL error classification."""

from typing import Any, Optional

STALE_ERROR_CODES = frozenset({"ITEM_NOT_FOUND", "CART_NOT_FOUND", "NOT_FOUND", "STALE_CART"})
UNAUTHENTICATED_ERROR_CODES = frozenset({"UNAUTHENTICATED"})

# Used only when the server omits extensions.code
STALE_MESSAGE_MARKERS = ("Item not found in cart", "Cart not found")
UNAUTHENTICATED_MESSAGE_MARKERS = ("Unauthorized", "Authentication")


class FoodHubError(Exception):
    """Base exception for FoodHub API errors."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthenticatedError(FoodHubError):
    """Operation requires a valid session."""


class StaleStateError(FoodHubError):
    """The targeted cart or cart item no longer exists on the server."""


class ServerError(FoodHubError):
    """The API rejected the request or returned an error."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        path: Optional[list[Any]] = None,
    ) -> None:
        super().__init__(message, code)
        self.status_code = status_code
        self.path = path


class ResponseValidationError(ServerError):
    """The API answered with a payload that does not match the expected shape."""


class NetworkError(FoodHubError):
    """The API could not be reached."""


def classify_graphql_error(error: dict[str, Any]) -> FoodHubError:
    """
    Map one entry of a GraphQL ``errors`` array to an exception.

    The structured ``extensions.code`` wins; message matching is the fallback
    for servers that only send text. An entry whose fields have the wrong
    types is reported as a ResponseValidationError.
    """
    message = error.get("message") or "An error occurred"
    extensions = error.get("extensions")
    if extensions is None:
        extensions = {}
    path = error.get("path")

    if (
        not isinstance(message, str)
        or not isinstance(extensions, dict)
        or not isinstance(extensions.get("code"), (str, type(None)))
        or not isinstance(path, (list, type(None)))
    ):
        return ResponseValidationError("Unexpected error response from server")

    code = extensions.get("code")
    if code in STALE_ERROR_CODES:
        return StaleStateError(message, code=code)
    if code in UNAUTHENTICATED_ERROR_CODES:
        return UnauthenticatedError(message, code=code)
    if code is None:
        if any(marker in message for marker in STALE_MESSAGE_MARKERS):
            return StaleStateError(message)
        if any(marker in message for marker in UNAUTHENTICATED_MESSAGE_MARKERS):
            return UnauthenticatedError(message)

    return ServerError(message, code=code, path=path)
