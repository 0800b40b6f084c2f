from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from wasatext.errors import InternalError, InvalidInputError, NotFoundError, UnauthorizedError
from wasatext.models.message import Message
from wasatext.models.reaction import MessageReaction
from wasatext.services.conversation_service import ConversationService
from wasatext.services.message_service import MessageService
from wasatext.services.reaction_service import ReactionService


@pytest.fixture
def direct(db, alice, bob):
    return ConversationService(db).get_or_create_direct(alice.id, bob.id)


def test_alice_and_bob_exchange(db, alice, bob, direct):
    conversations = ConversationService(db)
    messages = MessageService(db)

    hi = messages.send(direct.id, alice.id, content="Hi Bob")
    assert conversations.get_conversation(direct.id, bob.id)["unread_count"] == 1

    conversations.mark_as_read(direct.id, bob.id)
    messages.send(direct.id, bob.id, content="Hi Alice", reply_to_id=hi.id)
    ReactionService(db).react(hi.id, bob.id, "👍")

    history = messages.list_for_participant(direct.id, alice.id)
    assert [m["content"] for m in history] == ["Hi Bob", "Hi Alice"]
    assert history[1]["reply_to_id"] == hi.id
    assert history[1]["sender_username"] == "bob"
    assert [(r["username"], r["emoticon"]) for r in history[0]["reactions"]] == [("bob", "👍")]
    assert conversations.get_conversation(direct.id, alice.id)["unread_count"] == 1


def test_send_bumps_last_message_at(db, alice, direct):
    message = MessageService(db).send(direct.id, alice.id, content="ping")
    db.refresh(direct)
    assert direct.last_message_at == message.created_at
    assert message.forwarded is False


@pytest.mark.parametrize("content, photo_url", [
    (None, None),
    ("text", "/uploads/messages/a.png"),
    ("", None),
    ("x" * 1001, None),
])
def test_send_requires_exactly_one_valid_body(db, alice, direct, content, photo_url):
    with pytest.raises(InvalidInputError):
        MessageService(db).send(direct.id, alice.id, content=content, photo_url=photo_url)
    assert db.query(Message).count() == 0


def test_send_photo_message(db, alice, direct):
    message = MessageService(db).send(direct.id, alice.id, photo_url="/uploads/messages/a.png")
    assert message.content is None
    assert message.has_photo


def test_outsider_cannot_send(db, carol, direct):
    with pytest.raises(UnauthorizedError):
        MessageService(db).send(direct.id, carol.id, content="let me in")
    with pytest.raises(UnauthorizedError):
        MessageService(db).list_for_participant(direct.id, carol.id)


def test_reply_must_exist(db, alice, direct):
    with pytest.raises(NotFoundError):
        MessageService(db).send(direct.id, alice.id, content="re", reply_to_id="missing")


def test_reply_must_stay_in_conversation(db, alice, bob, carol, direct):
    messages = MessageService(db)
    other = ConversationService(db).get_or_create_direct(alice.id, carol.id)
    elsewhere = messages.send(other.id, carol.id, content="hello")

    with pytest.raises(InvalidInputError):
        messages.send(direct.id, alice.id, content="re", reply_to_id=elsewhere.id)


def test_equal_timestamps_keep_insertion_order(db, alice, bob, direct, monkeypatch):
    frozen = datetime(2030, 1, 1, 12, 0, 0)
    monkeypatch.setattr("wasatext.services.message_service.utcnow", lambda: frozen)
    messages = MessageService(db)
    for text in ("one", "two", "three"):
        messages.send(direct.id, alice.id, content=text)

    history = messages.get_conversation_messages(direct.id)
    assert [m["content"] for m in history] == ["one", "two", "three"]
    preview = ConversationService(db).list_for_user(bob.id)[0]["last_message"]
    assert preview["content"] == "three"


def test_forward_copies_into_target(db, alice, bob, carol, direct):
    conversations = ConversationService(db)
    messages = MessageService(db)
    group = conversations.create_group("Team", alice.id, [carol.id])
    original = messages.send(direct.id, bob.id, content="news")

    forwarded = messages.forward(original.id, group.id, alice.id)

    assert forwarded.id != original.id
    assert forwarded.conversation_id == group.id
    assert forwarded.sender_id == alice.id
    assert forwarded.content == "news"
    assert forwarded.forwarded is True
    assert forwarded.reply_to_id is None
    db.refresh(original)
    assert original.conversation_id == direct.id
    assert original.forwarded is False


def test_forward_photo_keeps_photo(db, alice, bob, carol, direct):
    messages = MessageService(db)
    group = ConversationService(db).create_group("Team", alice.id, [carol.id])
    original = messages.send(direct.id, bob.id, photo_url="/uploads/messages/cat.png")

    forwarded = messages.forward(original.id, group.id, alice.id)
    assert forwarded.photo_url == "/uploads/messages/cat.png"
    assert forwarded.content is None


def test_forward_requires_both_memberships(db, alice, bob, carol, direct):
    messages = MessageService(db)
    group = ConversationService(db).create_group("Team", alice.id, [carol.id])
    original = messages.send(direct.id, alice.id, content="secret")

    with pytest.raises(UnauthorizedError):
        messages.forward(original.id, group.id, carol.id)
    with pytest.raises(UnauthorizedError):
        messages.forward(original.id, group.id, bob.id)
    with pytest.raises(NotFoundError):
        messages.forward("missing", group.id, alice.id)
    assert db.query(Message).count() == 1


def test_delete_removes_reactions_and_detaches_replies(db, alice, bob, direct):
    messages = MessageService(db)
    original = messages.send(direct.id, alice.id, content="delete me")
    reply = messages.send(direct.id, bob.id, content="replying", reply_to_id=original.id)
    ReactionService(db).react(original.id, bob.id, "😮")
    original_id, reply_id = original.id, reply.id

    messages.delete(original_id, alice.id)

    with pytest.raises(NotFoundError):
        messages.get(original_id)
    assert db.query(MessageReaction).filter(MessageReaction.message_id == original_id).count() == 0
    assert messages.get(reply_id).reply_to_id is None


def test_only_sender_deletes(db, alice, bob, direct):
    messages = MessageService(db)
    message = messages.send(direct.id, alice.id, content="mine")

    with pytest.raises(UnauthorizedError):
        messages.delete(message.id, bob.id)
    with pytest.raises(NotFoundError):
        messages.delete("missing", alice.id)
    assert messages.get(message.id).content == "mine"


@pytest.fixture
def failing_commit(db, monkeypatch):
    """Make the next commits flush and then fail, as a lost database would."""
    def enable():
        def commit():
            db.flush()
            raise OperationalError("COMMIT", {}, Exception("database is locked"))
        monkeypatch.setattr(db, "commit", commit)
    return enable


def test_send_commit_failure_leaves_conversation_untouched(db, alice, direct, failing_commit):
    before = direct.last_message_at
    failing_commit()

    with pytest.raises(InternalError):
        MessageService(db).send(direct.id, alice.id, content="lost")

    assert db.query(Message).count() == 0
    db.refresh(direct)
    assert direct.last_message_at == before


def test_forward_commit_failure_leaves_target_untouched(db, alice, bob, carol, direct, failing_commit):
    messages = MessageService(db)
    group = ConversationService(db).create_group("Team", alice.id, [carol.id])
    original = messages.send(direct.id, bob.id, content="news")
    original_id = original.id
    before = group.last_message_at
    failing_commit()

    with pytest.raises(InternalError):
        messages.forward(original_id, group.id, alice.id)

    assert db.query(Message).filter(Message.conversation_id == group.id).count() == 0
    assert db.query(Message).count() == 1
    db.refresh(group)
    assert group.last_message_at == before


def test_forward_moves_target_to_top(db, alice, bob, carol, direct):
    conversations = ConversationService(db)
    messages = MessageService(db)
    group = conversations.create_group("Team", alice.id, [carol.id])
    original = messages.send(direct.id, bob.id, content="news")
    assert conversations.list_for_user(alice.id)[0]["id"] == direct.id

    forwarded = messages.forward(original.id, group.id, alice.id)

    db.refresh(group)
    assert group.last_message_at == forwarded.created_at
    listing = conversations.list_for_user(alice.id)
    assert [entry["id"] for entry in listing] == [group.id, direct.id]
    assert listing[0]["last_message"]["content"] == "news"
