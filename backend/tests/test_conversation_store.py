import pytest

from eume.config import PHOTO_SESSION_TTL_MS, SESSION_TIMEOUT_MS
from eume.crud import conversation as crud_conversation
from eume.errors import ValidationError
from eume.models.conversation import ConversationUser, PhotoSession

NOW = 1_700_000_000_000
MINUTE = 60 * 1000


def test_add_message_creates_user(db):
    crud_conversation.add_message(db, "device-1", "user", "안녕하세요", NOW)

    user = db.query(ConversationUser).filter_by(user_id="device-1").one()
    assert user.last_interaction_at is not None


def test_add_message_rejects_unknown_role(db):
    with pytest.raises(ValidationError) as exc_info:
        crud_conversation.add_message(db, "device-1", "narrator", "...", NOW)
    assert exc_info.value.field == "role"


def test_recent_messages_evicts_stale(db):
    crud_conversation.add_message(db, "device-1", "user", "오래된 이야기", NOW - SESSION_TIMEOUT_MS - MINUTE)
    crud_conversation.add_message(db, "device-1", "user", "방금 한 이야기", NOW - MINUTE)

    messages = crud_conversation.get_recent_messages(db, "device-1", now_ms=NOW)

    assert [m.content for m in messages] == ["방금 한 이야기"]
    assert all(NOW - m.timestamp <= SESSION_TIMEOUT_MS for m in messages)
    assert crud_conversation.cleanup_stale_messages(db, "device-1", now_ms=NOW) == 0


def test_message_exactly_at_timeout_is_kept(db):
    crud_conversation.add_message(db, "device-1", "user", "경계", NOW - SESSION_TIMEOUT_MS)

    messages = crud_conversation.get_recent_messages(db, "device-1", now_ms=NOW)

    assert len(messages) == 1


def test_recent_messages_are_ascending_and_limited(db):
    for i in range(5):
        crud_conversation.add_message(db, "device-1", "user", f"메시지 {i}", NOW - (5 - i) * MINUTE)

    messages = crud_conversation.get_recent_messages(db, "device-1", limit=3, now_ms=NOW)

    assert [m.content for m in messages] == ["메시지 2", "메시지 3", "메시지 4"]


def test_messages_are_scoped_per_user(db):
    crud_conversation.add_message(db, "device-1", "user", "하나", NOW)
    crud_conversation.add_message(db, "device-2", "user", "둘", NOW)

    assert [m.content for m in crud_conversation.get_all_messages(db, "device-2", now_ms=NOW)] == ["둘"]


def test_single_active_photo_session(db):
    first = crud_conversation.create_photo_session(db, "device-1", "첫 사진", start_time=NOW - MINUTE)
    second = crud_conversation.create_photo_session(db, "device-1", "두 번째 사진", start_time=NOW)

    active = db.query(PhotoSession).filter_by(user_id="device-1", is_active=True).all()
    assert [s.id for s in active] == [second]
    assert first != second

    photo_session = crud_conversation.get_active_photo_session(db, "device-1", now_ms=NOW)
    assert photo_session.image_analysis == "두 번째 사진"


def test_expired_photo_session_is_deactivated_on_read(db):
    session_id = crud_conversation.create_photo_session(
        db, "device-1", "옛날 사진", start_time=NOW - PHOTO_SESSION_TTL_MS - MINUTE
    )

    assert crud_conversation.get_active_photo_session(db, "device-1", now_ms=NOW) is None
    assert db.get(PhotoSession, session_id).is_active is False


def test_deactivate_photo_session(db):
    crud_conversation.create_photo_session(db, "device-1", "사진", start_time=NOW)

    assert crud_conversation.deactivate_photo_session(db, "device-1") == 1
    assert crud_conversation.get_active_photo_session(db, "device-1", now_ms=NOW) is None
    assert crud_conversation.deactivate_photo_session(db, "device-1") == 0


def test_conversation_history(db):
    crud_conversation.add_message(db, "device-1", "user", "안녕", NOW - 2 * MINUTE)
    crud_conversation.add_message(db, "device-1", "assistant", "안녕하세요!", NOW - MINUTE)
    crud_conversation.create_photo_session(db, "device-1", "사진", start_time=NOW - MINUTE)

    history = crud_conversation.get_conversation_history(db, "device-1", now_ms=NOW)

    assert [m.role for m in history["messages"]] == ["user", "assistant"]
    assert history["last_interaction_time"] == NOW - MINUTE
    assert history["photo_session"].image_analysis == "사진"


def test_empty_history_uses_now(db):
    history = crud_conversation.get_conversation_history(db, "nobody", now_ms=NOW)

    assert history == {"messages": [], "last_interaction_time": NOW, "photo_session": None}
