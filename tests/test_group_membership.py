import pytest

from wasatext.errors import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from wasatext.models.conversation import Conversation
from wasatext.services.conversation_service import ConversationService
from wasatext.services.message_service import MessageService


@pytest.fixture
def team(db, alice, bob):
    return ConversationService(db).create_group("Team", alice.id, [bob.id])


def test_leave_then_rejoin_then_duplicate_add(db, team, alice, bob, carol):
    service = ConversationService(db)

    service.add_member(team.id, bob.id, carol.id)
    assert service.count_participants(team.id) == 3

    service.leave_group(team.id, carol.id)
    assert not service.access.is_participant(team.id, carol.id)
    with pytest.raises(UnauthorizedError):
        MessageService(db).send(team.id, carol.id, content="still here?")

    service.add_member(team.id, alice.id, carol.id)
    assert service.access.is_participant(team.id, carol.id)

    with pytest.raises(ConflictError):
        service.add_member(team.id, alice.id, carol.id)


def test_outsider_cannot_add_members(db, team, carol, make_user):
    dave = make_user("dave")
    with pytest.raises(UnauthorizedError):
        ConversationService(db).add_member(team.id, carol.id, dave.id)


def test_add_member_to_direct_conversation_is_invalid(db, alice, bob, carol):
    service = ConversationService(db)
    direct = service.get_or_create_direct(alice.id, bob.id)
    with pytest.raises(InvalidInputError):
        service.add_member(direct.id, alice.id, carol.id)


def test_add_unknown_user(db, team, alice):
    with pytest.raises(NotFoundError):
        ConversationService(db).add_member(team.id, alice.id, "missing")


def test_add_member_at_capacity(db, team, alice, carol, monkeypatch):
    service = ConversationService(db)
    monkeypatch.setattr(service.settings, "MAX_GROUP_MEMBERS", 2)
    with pytest.raises(ConflictError):
        service.add_member(team.id, alice.id, carol.id)


def test_only_creator_removes_others(db, alice, bob, carol):
    service = ConversationService(db)
    group = service.create_group("Team", alice.id, [bob.id, carol.id])

    with pytest.raises(UnauthorizedError):
        service.remove_member(group.id, bob.id, carol.id)

    service.remove_member(group.id, alice.id, carol.id)
    assert not service.access.is_participant(group.id, carol.id)


def test_remove_non_member(db, team, alice, carol):
    with pytest.raises(NotFoundError):
        ConversationService(db).remove_member(team.id, alice.id, carol.id)


def test_group_survives_its_last_member(db, team, alice, bob):
    service = ConversationService(db)
    service.leave_group(team.id, bob.id)
    service.leave_group(team.id, alice.id)

    assert service.count_participants(team.id) == 0
    assert db.query(Conversation).filter(Conversation.id == team.id).count() == 1
    assert service.list_for_user(alice.id) == []


def test_rename_group(db, team, bob, carol):
    service = ConversationService(db)
    assert service.update_group_name(team.id, bob.id, "Crew").name == "Crew"

    with pytest.raises(UnauthorizedError):
        service.update_group_name(team.id, carol.id, "Mine")
    with pytest.raises(InvalidInputError):
        service.update_group_name(team.id, bob.id, "")


def test_set_group_photo(db, team, alice):
    group = ConversationService(db).update_group_photo(team.id, alice.id, "/uploads/groups/team.png")
    assert group.photo_url == "/uploads/groups/team.png"
