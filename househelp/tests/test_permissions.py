import pytest

from househelp.errors import WrongRole
from househelp.permissions import Decision, authorize, require_user_type
from househelp.schemas.base import VerifiedUser


def _user(user_type: str) -> VerifiedUser:
    return VerifiedUser(id="U-1", type=user_type)


@pytest.mark.parametrize("user_type", ["household", "worker", "admin"])
def test_no_required_type_allows_any_verified_user(user_type: str) -> None:
    assert authorize(_user(user_type)) is Decision.ALLOW


def test_exact_match_only() -> None:
    assert authorize(_user("worker"), "worker") is Decision.ALLOW
    assert authorize(_user("admin"), "worker") is Decision.DENY
    assert authorize(_user("admin"), "household") is Decision.DENY
    assert authorize(_user("worker"), "admin") is Decision.DENY


def test_require_user_type_raises_wrong_role_and_emits_event(monkeypatch) -> None:
    lines = []
    monkeypatch.setattr("househelp.security_events.write_security_log", lines.append)

    with pytest.raises(WrongRole) as excinfo:
        require_user_type(_user("admin"), "worker", resource="/api/worker/notifications")

    assert excinfo.value.status_code == 403
    assert excinfo.value.message == "Access restricted to workers"
    assert len(lines) == 1
    assert '"event":"AUTHZ_DENY"' in lines[0]
    assert '"required_type":"worker"' in lines[0]


def test_require_user_type_returns_user_on_allow() -> None:
    user = _user("household")
    assert require_user_type(user, "household") is user
