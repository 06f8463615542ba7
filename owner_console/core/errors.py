from __future__ import annotations

from collections.abc import Mapping, Sequence


class ConsoleError(Exception):
    status_code = 500
    error_type = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, object]:
        return {"error": self.message, "error_type": self.error_type}


class ValidationError(ConsoleError):
    """Malformed or missing input.

    ``status_code`` defaults to 422; "nothing to update" style rejections
    pass 400.
    """

    status_code = 422
    error_type = "validation_error"

    def __init__(
        self,
        message: str,
        field_errors: Mapping[str, Sequence[str]] | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.field_errors = {key: list(values) for key, values in (field_errors or {}).items()}
        if status_code is not None:
            self.status_code = status_code

    def payload(self) -> dict[str, object]:
        body = super().payload()
        if self.field_errors:
            body["field_errors"] = self.field_errors
        return body


class AuthenticationError(ConsoleError):
    status_code = 401
    error_type = "authentication_error"


class AccessError(ConsoleError):
    status_code = 403
    error_type = "access_error"

    def __init__(self, message: str = "Owner access required") -> None:
        super().__init__(message)


class NotFoundError(ConsoleError):
    status_code = 404
    error_type = "not_found"


class ConflictError(ConsoleError):
    status_code = 409
    error_type = "conflict"


class ReferentialIntegrityError(ConsoleError):
    status_code = 422
    error_type = "referential_integrity_error"


class SignatureError(ConsoleError):
    status_code = 400
    error_type = "signature_error"


class UpstreamError(ConsoleError):
    status_code = 500
    error_type = "upstream_error"


FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


def sqlstate_of(exc: BaseException) -> str | None:
    """Return the PostgreSQL SQLSTATE carried by a DBAPI error, if any."""
    candidates = [exc, getattr(exc, "orig", None)]
    orig = getattr(exc, "orig", None)
    if orig is not None:
        candidates.append(getattr(orig, "__cause__", None))
    for candidate in candidates:
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if isinstance(code, str):
            return code
    return None


def datastore_error(
    exc: BaseException,
    action: str,
    *,
    foreign_key_message: str | None = None,
    unique_message: str | None = None,
) -> ConsoleError:
    code = sqlstate_of(exc)
    if code == FOREIGN_KEY_VIOLATION and foreign_key_message:
        return ReferentialIntegrityError(foreign_key_message)
    if code == UNIQUE_VIOLATION and unique_message:
        return ConflictError(unique_message)
    return UpstreamError(f"Unable to {action}: {getattr(exc, 'orig', None) or exc}")
