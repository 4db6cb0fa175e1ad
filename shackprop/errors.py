"""Errors surfaced to HTTP callers as JSON {error, detail}."""


class PropagationError(Exception):
    status = 500
    code = "propagation_failed"

    def __init__(self, detail: str = "", code: str | None = None):
        super().__init__(detail or self.code)
        self.detail = detail
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class InvalidQthError(PropagationError):
    """No usable station location (no coordinates, bad locator)."""
    status = 400
    code = "invalid_qth_locator"


class BadRequestError(PropagationError):
    status = 400
    code = "bad_request"


class UpstreamError(PropagationError):
    status = 502
    code = "upstream_failed"
