import pytest

from wasatext.errors import InvalidInputError, NotFoundError, UnauthorizedError
from wasatext.models.reaction import MessageReaction
from wasatext.services.conversation_service import ConversationService
from wasatext.services.message_service import MessageService
from wasatext.services.reaction_service import ReactionService


@pytest.fixture
def message(db, alice, bob):
    conversation = ConversationService(db).get_or_create_direct(alice.id, bob.id)
    return MessageService(db).send(conversation.id, alice.id, content="react to me")


def test_reacting_again_replaces_in_place(db, bob, message):
    service = ReactionService(db)
    first = service.react(message.id, bob.id, "👍")
    second = service.react(message.id, bob.id, "❤️")

    assert second["id"] == first["id"]
    assert second["emoticon"] == "❤️"
    assert db.query(MessageReaction).filter(MessageReaction.message_id == message.id).count() == 1


def test_each_participant_holds_one_reaction(db, alice, bob, message):
    service = ReactionService(db)
    service.react(message.id, alice.id, "😂")
    service.react(message.id, bob.id, "😂")

    described = MessageService(db).describe_message(MessageService(db).get(message.id))
    assert sorted(r["username"] for r in described["reactions"]) == ["alice", "bob"]


def test_react_checks_message_then_membership(db, carol, message):
    service = ReactionService(db)
    with pytest.raises(NotFoundError):
        service.react("missing", carol.id, "👍")
    with pytest.raises(UnauthorizedError):
        service.react(message.id, carol.id, "👍")


@pytest.mark.parametrize("emoticon", ["", "x" * 11])
def test_react_validates_emoticon(db, bob, message, emoticon):
    with pytest.raises(InvalidInputError):
        ReactionService(db).react(message.id, bob.id, emoticon)


def test_unreact(db, bob, message):
    service = ReactionService(db)
    reaction = service.react(message.id, bob.id, "👍")

    service.unreact(reaction["id"], bob.id, message_id=message.id)
    assert service.get_reaction(reaction["id"]) is None


def test_unreact_missing_before_foreign(db, alice, bob, message):
    service = ReactionService(db)
    reaction = service.react(message.id, bob.id, "👍")

    with pytest.raises(NotFoundError):
        service.unreact("missing", alice.id)
    with pytest.raises(NotFoundError):
        service.unreact(reaction["id"], bob.id, message_id="another-message")
    with pytest.raises(UnauthorizedError):
        service.unreact(reaction["id"], alice.id)
    assert service.get_reaction(reaction["id"]) is not None
