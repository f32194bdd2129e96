import pytest

from househelp.errors import (
    ConfigurationError,
    InvalidToken,
    MissingToken,
    UpstreamFailure,
    UpstreamUnavailable,
    ValidationFailure,
    VerificationFailed,
    WrongRole,
    internal_error_payload,
)


@pytest.mark.parametrize(
    "exc, status, message",
    [
        (MissingToken(), 401, "No token provided"),
        (InvalidToken(), 401, "Invalid or expired token"),
        (VerificationFailed("Account suspended"), 401, "Account suspended"),
        (WrongRole("worker"), 403, "Access restricted to workers"),
        (UpstreamFailure("jobs 404", 404), 404, "jobs 404"),
        (UpstreamFailure("jobs bad payload"), 502, "jobs bad payload"),
        (UpstreamUnavailable("verify timeout"), 502, "verify timeout"),
        (ValidationFailure("title is required"), 400, "title is required"),
        (ConfigurationError("Missing data store configuration"), 500, "Missing data store configuration"),
    ],
)
def test_error_taxonomy_status_codes(exc, status, message) -> None:
    assert exc.status_code == status
    assert exc.message == message


def test_internal_error_details_only_outside_prod() -> None:
    exc = RuntimeError("db password=hunter2 leaked?")
    assert internal_error_payload(exc, include_details=False) == {"error": "Internal server error"}
    assert internal_error_payload(exc, include_details=True)["details"].startswith("db password")
