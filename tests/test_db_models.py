"""Unit tests for the messaging ORM models.

These check table mapping, the canonical participant ordering of
conversations, and that the storage layer rejects duplicate or mis-ordered
pairs on its own.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from numina_social.models import (
    BlockedUser,
    Conversation,
    Message,
    MessageReport,
    User,
    canonical_pair,
)


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert User.__tablename__ == "user_account"
    assert Conversation.__tablename__ == "conversation"
    assert Message.__tablename__ == "message"
    assert BlockedUser.__tablename__ == "blocked_user"
    assert MessageReport.__tablename__ == "message_report"


@pytest.mark.parametrize(("a", "b"), [(3, 7), (7, 3)])
def test_canonical_pair_orders_ascending(a, b):
    assert canonical_pair(a, b) == (3, 7)


def test_conversation_participant_helpers():
    conversation = Conversation(id="c1", participant_1_id=1, participant_2_id=2)
    conversation.archived_by_user_1 = False
    conversation.archived_by_user_2 = False

    assert conversation.has_participant(1)
    assert not conversation.has_participant(3)
    assert conversation.other_participant_id(1) == 2
    assert conversation.other_participant_id(2) == 1
    with pytest.raises(ValueError):
        conversation.other_participant_id(3)

    conversation.set_archived_for(2, True)
    assert conversation.is_archived_for(2)
    assert not conversation.is_archived_for(1)
    assert not conversation.is_archived_for(3)


def test_user_public_name_falls_back_to_email():
    assert User(email="runner@example.com", display_name=None).public_name == "runner"
    assert User(email="runner@example.com", display_name="Rae").public_name == "Rae"


def test_storage_rejects_duplicate_pair(db_session, alice, bob):
    low, high = canonical_pair(alice.id, bob.id)
    db_session.add(Conversation(participant_1_id=low, participant_2_id=high))
    db_session.commit()

    db_session.add(Conversation(participant_1_id=low, participant_2_id=high))
    with pytest.raises(IntegrityError):
        db_session.flush()
    db_session.rollback()


def test_storage_rejects_reversed_pair(db_session, alice, bob):
    low, high = canonical_pair(alice.id, bob.id)
    db_session.add(Conversation(participant_1_id=high, participant_2_id=low))
    with pytest.raises(IntegrityError):
        db_session.flush()
    db_session.rollback()


def test_storage_rejects_duplicate_block(db_session, alice, bob):
    db_session.add(BlockedUser(blocker_id=alice.id, blocked_id=bob.id))
    db_session.commit()

    db_session.add(BlockedUser(blocker_id=alice.id, blocked_id=bob.id))
    with pytest.raises(IntegrityError):
        db_session.flush()
    db_session.rollback()
