"""
Tests for AccountService against a real (SQLite) session.
"""
import pytest

from app.core.errors import ConflictError, InvalidCredentialsError, InvalidInputError
from app.core.security import decode_token, verify_password
from app.models.health_data import HealthData
from app.models.user import User
from app.services.account_service import AccountService
from app.services.health_service import HealthService


def test_register_returns_token_and_public_view(db):
    token, view = AccountService(db).register("Ada", "Ada@Medli.IO", "password1")

    assert set(view) == {"id", "name", "email", "createdAt"}
    assert view["email"] == "ada@medli.io"
    assert decode_token(token)["sub"] == view["id"]
    assert "password" not in str(view)


def test_register_does_not_create_health_record(db):
    AccountService(db).register("Ada", "ada@medli.io", "password1")
    assert db.query(HealthData).count() == 0


@pytest.mark.parametrize("email", ["ada@medli.io", "ADA@medli.io", "Ada@Medli.Io"])
def test_register_duplicate_email_is_conflict(db, email):
    service = AccountService(db)
    service.register("Ada", "ada@medli.io", "password1")

    with pytest.raises(ConflictError) as exc_info:
        service.register("Someone Else", email, "different-password")
    assert exc_info.value.message == "Email already registered"


def test_register_requires_all_fields(db):
    with pytest.raises(InvalidInputError):
        AccountService(db).register("Ada", "", "password1")


def test_login_succeeds_only_with_the_right_password(db):
    service = AccountService(db)
    service.register("Ada", "ada@medli.io", "password1")

    token, view = service.login("ADA@medli.io", "password1")
    assert token
    assert set(view) == {"id", "name", "email"}

    with pytest.raises(InvalidCredentialsError):
        service.login("ada@medli.io", "password2")


def test_login_errors_do_not_reveal_which_part_was_wrong(db):
    service = AccountService(db)
    service.register("Ada", "ada@medli.io", "password1")

    with pytest.raises(InvalidCredentialsError) as unknown:
        service.login("nobody@medli.io", "password1")
    with pytest.raises(InvalidCredentialsError) as wrong:
        service.login("ada@medli.io", "wrong-password")

    assert unknown.value.message == wrong.value.message
    assert unknown.value.status_code == wrong.value.status_code


def test_update_profile_rejects_email_of_another_user(db, user):
    service = AccountService(db)
    service.register("Bob", "bob@medli.io", "password1")

    with pytest.raises(ConflictError) as exc_info:
        service.update_profile(user, email="BOB@medli.io")
    assert exc_info.value.message == "Email already in use"


def test_update_profile_allows_own_email_and_new_name(db, user):
    view = AccountService(db).update_profile(user, name="Ada L.", email="ada@medli.io")
    assert view["name"] == "Ada L."
    assert view["email"] == "ada@medli.io"
    assert "updatedAt" in view


def test_change_password(db, user):
    service = AccountService(db)

    with pytest.raises(InvalidCredentialsError) as exc_info:
        service.change_password(user, "wrong-password", "new-password")
    assert exc_info.value.message == "Current password is incorrect"

    service.change_password(user, "password1", "new-password")
    assert verify_password("new-password", user.password_hash)
    with pytest.raises(InvalidCredentialsError):
        service.login("ada@medli.io", "password1")


def test_delete_account_removes_health_data(db, user):
    HealthService(db, user).add_recording({"duration": 3})
    assert db.query(HealthData).count() == 1

    AccountService(db).delete_account(user)

    assert db.query(User).count() == 0
    assert db.query(HealthData).count() == 0
