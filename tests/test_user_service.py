import pytest

from wasatext.errors import ConflictError, InvalidInputError, NotFoundError
from wasatext.services.user_service import UserService


def test_update_username(db, alice):
    user = UserService(db).update_username(alice.id, "alice-2")
    assert user.username == "alice-2"


def test_update_username_to_taken_name_conflicts(db, alice, bob):
    with pytest.raises(ConflictError):
        UserService(db).update_username(alice.id, "bob")
    db.refresh(alice)
    assert alice.username == "alice"


def test_update_username_to_same_name_is_noop(db, alice):
    assert UserService(db).update_username(alice.id, "alice").username == "alice"


def test_update_username_validates_charset(db, alice):
    with pytest.raises(InvalidInputError):
        UserService(db).update_username(alice.id, "no spaces")


def test_update_unknown_user(db):
    with pytest.raises(NotFoundError):
        UserService(db).update_photo("missing", "/uploads/profiles/x.png")


def test_update_photo(db, alice):
    user = UserService(db).update_photo(alice.id, "/uploads/profiles/a.png")
    assert user.photo_url == "/uploads/profiles/a.png"


def test_search_is_prefix_match_excluding_caller(db, make_user):
    caller = make_user("anna")
    make_user("annie")
    make_user("andrew")
    make_user("bob")

    names = [u.username for u in UserService(db).search_users("ann", exclude_user_id=caller.id)]
    assert names == ["annie"]


def test_search_treats_underscore_literally(db, make_user):
    make_user("a_b")
    make_user("axb")

    names = [u.username for u in UserService(db).search_users("a_")]
    assert names == ["a_b"]


def test_search_rejects_bad_query(db):
    with pytest.raises(InvalidInputError):
        UserService(db).search_users("bad query")
