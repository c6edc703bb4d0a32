"""Error taxonomy shared by every engine component."""

from typing import Any


class InvalidRequest(Exception):
    """A request the mock service refuses, mirroring `invalid_request_error`.

    `http_status` is 400 for malformed, missing or out-of-range parameters and
    404 when the request references a resource that does not exist.
    """

    error_type = "invalid_request_error"

    def __init__(self, message: str, param: str | None = None, http_status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.param = param
        self.http_status = http_status

    def __repr__(self) -> str:
        return f"InvalidRequest(message={self.message!r}, param={self.param!r}, http_status={self.http_status})"

    def to_dict(self) -> dict[str, Any]:
        """Render the wire-level error body."""

        body: dict[str, Any] = {"type": self.error_type, "message": self.message}
        if self.param is not None:
            body["param"] = self.param
        return {"error": body}


def missing_param(name: str) -> InvalidRequest:
    return InvalidRequest(f"Missing required param: {name}.", param=name)


def no_such(resource_label: str, resource_id: str, param: str) -> InvalidRequest:
    return InvalidRequest(f"No such {resource_label}: {resource_id}", param=param, http_status=404)


class ConcurrentUpdateError(RuntimeError):
    """Raised when a compare-and-set store update observes a stale version."""
