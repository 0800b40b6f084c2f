import pytest

from wasatext.errors import InvalidInputError
from wasatext.models.user import User, UserSession
from wasatext.services.auth_service import AuthService


def test_login_registers_unknown_username(db):
    user, token = AuthService(db).login("alice")

    assert user.username == "alice"
    assert token
    assert db.query(User).count() == 1
    assert db.query(UserSession).filter(UserSession.token == token).one().user_id == user.id


def test_login_again_reuses_user_and_opens_new_session(db):
    service = AuthService(db)
    first_user, first_token = service.login("alice")
    second_user, second_token = service.login("alice")

    assert first_user.id == second_user.id
    assert first_token != second_token
    assert db.query(UserSession).filter(UserSession.user_id == first_user.id).count() == 2


@pytest.mark.parametrize("name", ["", "ab", "a" * 17, "bad name", "émile"])
def test_login_rejects_invalid_usernames(db, name):
    with pytest.raises(InvalidInputError):
        AuthService(db).login(name)
    assert db.query(User).count() == 0


def test_token_resolves_to_user_until_logout(db):
    service = AuthService(db)
    user, token = service.login("bob_1")

    assert service.get_user_by_token(token).id == user.id
    assert service.get_user_by_token("not-a-token") is None

    assert service.logout(token) is True
    assert service.get_user_by_token(token) is None
    assert service.logout(token) is False
