"""Direct messaging business rules.

:class:`MessagingService` is the only component that mutates messaging state.
Each operation validates its input, checks that the caller may act on the
referenced conversation or message, writes through the repositories and
commits once. Live pushes go out through the connection registry after the
commit; their outcome never changes the result of the operation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from numina_social.db.time import utcnow
from numina_social.errors import ForbiddenError, NotFoundError, ValidationError
from numina_social.models import (
    MAX_MESSAGE_LENGTH,
    MAX_REPORT_REASON_LENGTH,
    Conversation,
    Message,
)
from numina_social.realtime.registry import ConnectionRegistry
from numina_social.repositories import (
    BlockedUserRepository,
    ConversationRepository,
    MessageReportRepository,
    MessageRepository,
    UserRepository,
)
from numina_social.schemas.messaging import (
    BlockedUserOut,
    BlockUserResponse,
    ConversationListResponse,
    ConversationOut,
    ConversationParticipant,
    MessageListResponse,
    MessageOut,
    ReportMessageResponse,
    SendMessageResponse,
    UnreadCountResponse,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def validate_page(page: int, page_size: int) -> int:
    """Check pagination arguments and return the row offset for the page."""
    if page < 1:
        raise ValidationError("Page must be >= 1", "INVALID_PAGE")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(
            f"Page size must be between 1 and {MAX_PAGE_SIZE}", "INVALID_PAGE_SIZE"
        )
    return (page - 1) * page_size


class MessagingService:
    """Service handling direct messages, blocks and reports between users."""

    def __init__(self, db: Session, notifier: ConnectionRegistry | None = None) -> None:
        """Bind the service to a request-scoped session.

        Args:
            db: Database session used for every repository.
            notifier: Registry used for live pushes; None disables pushing.
        """
        self.db = db
        self.notifier = notifier
        self.users = UserRepository(db)
        self.conversations = ConversationRepository(db)
        self.messages = MessageRepository(db)
        self.blocks = BlockedUserRepository(db)
        self.reports = MessageReportRepository(db)

    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        """Commit on success; roll back and re-raise store failures."""
        try:
            yield
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Messaging store operation failed; rolling back")
            self.db.rollback()
            raise

    def _participant_conversation(self, conversation_id: str, user_id: int) -> Conversation:
        conversation = self.conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found", "CONVERSATION_NOT_FOUND")
        if not conversation.has_participant(user_id):
            raise ForbiddenError(
                "You do not have access to this conversation", "CONVERSATION_FORBIDDEN"
            )
        return conversation

    # Sending

    async def send_message(
        self, sender_id: int, recipient_id: int, content: str
    ) -> SendMessageResponse:
        """Persist a message from ``sender_id`` to ``recipient_id``.

        The conversation for the pair is created on first contact. The message
        insert and the conversation's ``last_message_at`` bump are committed
        together; the recipient is then notified if they are connected.

        Raises:
            ValidationError: EMPTY_MESSAGE, MESSAGE_TOO_LONG or SELF_MESSAGE.
            NotFoundError: USER_NOT_FOUND for a missing sender or recipient.
            ForbiddenError: USER_BLOCKED if either user blocked the other.
        """
        if not content or not content.strip():
            raise ValidationError("Message content cannot be empty", "EMPTY_MESSAGE")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message content cannot exceed {MAX_MESSAGE_LENGTH} characters",
                "MESSAGE_TOO_LONG",
            )
        if sender_id == recipient_id:
            raise ValidationError("Cannot send message to yourself", "SELF_MESSAGE")

        if self.users.find_by_id(sender_id) is None:
            raise NotFoundError("Sender not found", "USER_NOT_FOUND")
        if self.users.find_by_id(recipient_id) is None:
            raise NotFoundError("Recipient not found", "USER_NOT_FOUND")

        if self.blocks.is_blocked_either_way(sender_id, recipient_id):
            raise ForbiddenError("Cannot send message to this user", "USER_BLOCKED")

        with self._unit_of_work():
            conversation, created = self.conversations.get_or_create(sender_id, recipient_id)
            message = self.messages.create(
                conversation_id=conversation.id,
                sender_id=sender_id,
                content=content,
            )
            self.conversations.touch_last_message(conversation, message.sent_at)

        if created:
            logger.info(
                "Created conversation %s between users %s and %s",
                conversation.id,
                *conversation.participant_ids,
            )
        logger.debug("User %s sent message %s in %s", sender_id, message.id, conversation.id)

        payload = MessageOut.model_validate(message)
        if self.notifier is not None:
            await self.notifier.notify_new_message(recipient_id, payload)
        return SendMessageResponse(message=payload, conversation_id=conversation.id)

    # Reading

    async def get_conversations(
        self, user_id: int, page: int, page_size: int
    ) -> ConversationListResponse:
        """Return the user's non-archived conversations, most recent activity first."""
        offset = validate_page(page, page_size)
        conversations, total = self.conversations.list_for_user(
            user_id, offset=offset, limit=page_size, include_archived=False
        )
        return ConversationListResponse(
            conversations=self._summarize(conversations, user_id),
            total=total,
            page=page,
            page_size=page_size,
        )

    def _summarize(self, conversations: list[Conversation], viewer_id: int) -> list[ConversationOut]:
        other_ids = [c.other_participant_id(viewer_id) for c in conversations]
        users = self.users.find_many(other_ids)
        conversation_ids = [c.id for c in conversations]
        latest = self.messages.latest_for_conversations(conversation_ids)
        unread = self.messages.unread_counts_by_conversation(conversation_ids, viewer_id)

        summaries: list[ConversationOut] = []
        for conversation, other_id in zip(conversations, other_ids):
            other = users.get(other_id)
            last = latest.get(conversation.id)
            summaries.append(
                ConversationOut(
                    id=conversation.id,
                    participant_1_id=conversation.participant_1_id,
                    participant_2_id=conversation.participant_2_id,
                    last_message_at=conversation.last_message_at,
                    last_message=last.content if last is not None else None,
                    unread_count=unread.get(conversation.id, 0),
                    other_participant=(
                        ConversationParticipant(id=other.id, name=other.public_name, email=other.email)
                        if other is not None
                        else None
                    ),
                )
            )
        return summaries

    async def get_messages(
        self, conversation_id: str, user_id: int, page: int, page_size: int
    ) -> MessageListResponse:
        """Return a page of visible messages, oldest first.

        Offset pagination: a page boundary may shift if messages arrive
        between requests.
        """
        offset = validate_page(page, page_size)
        self._participant_conversation(conversation_id, user_id)
        messages, total = self.messages.list_by_conversation(
            conversation_id, offset=offset, limit=page_size
        )
        return MessageListResponse(
            messages=[MessageOut.model_validate(m) for m in messages],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def get_unread_count(self, user_id: int) -> UnreadCountResponse:
        return UnreadCountResponse(count=self.messages.count_unread_for_user(user_id))

    # Receipts

    async def mark_as_read(self, conversation_id: str, user_id: int) -> bool:
        """Mark every unread message addressed to the user in the conversation as read.

        Returns:
            True if at least one message changed.
        """
        self._participant_conversation(conversation_id, user_id)
        with self._unit_of_work():
            changed = self.messages.mark_conversation_read(conversation_id, user_id, utcnow())

        if changed and self.notifier is not None:
            for message in changed:
                await self.notifier.notify_message_read(
                    message.sender_id, message.id, conversation_id, message.read_at
                )
        return bool(changed)

    async def mark_as_delivered(self, message_id: str, user_id: int) -> MessageOut:
        """Record that the recipient's client received a message and tell the sender."""
        message = self.messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found", "MESSAGE_NOT_FOUND")
        conversation = self.conversations.get_by_id(message.conversation_id)
        if (
            conversation is None
            or not conversation.has_participant(user_id)
            or message.sender_id == user_id
        ):
            raise ForbiddenError(
                "You do not have access to this conversation", "CONVERSATION_FORBIDDEN"
            )

        with self._unit_of_work():
            changed = self.messages.mark_delivered(message, utcnow())

        if changed and self.notifier is not None and message.delivered_at is not None:
            await self.notifier.notify_message_delivered(
                message.sender_id, message.id, message.conversation_id, message.delivered_at
            )
        return MessageOut.model_validate(message)

    async def typing_recipient(self, conversation_id: str, user_id: int) -> int:
        """Return who should receive the user's typing indicator for a conversation."""
        conversation = self._participant_conversation(conversation_id, user_id)
        return conversation.other_participant_id(user_id)

    # Conversation management

    async def archive_conversation(
        self, conversation_id: str, user_id: int, archived: bool = True
    ) -> bool:
        """Hide (or restore) a conversation in the user's own listing only."""
        conversation = self._participant_conversation(conversation_id, user_id)
        with self._unit_of_work():
            return self.conversations.set_archived(conversation, user_id, archived)

    async def delete_message(self, message_id: str, user_id: int) -> bool:
        """Soft-delete a message; only its sender may do so."""
        message = self.messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found", "MESSAGE_NOT_FOUND")
        if message.sender_id != user_id:
            raise ForbiddenError(
                "You can only delete your own messages", "MESSAGE_DELETE_FORBIDDEN"
            )
        with self._unit_of_work():
            deleted = self.messages.soft_delete(message)
        logger.info("User %s deleted message %s", user_id, message_id)
        return deleted

    # Blocking

    async def block_user(self, blocker_id: int, blocked_id: int) -> BlockUserResponse:
        """Block ``blocked_id`` for ``blocker_id``; blocking twice is a no-op."""
        if blocker_id == blocked_id:
            raise ValidationError("Cannot block yourself", "SELF_BLOCK")
        if self.users.find_by_id(blocked_id) is None:
            raise NotFoundError("User not found", "USER_NOT_FOUND")

        with self._unit_of_work():
            self.blocks.block(blocker_id, blocked_id)
        logger.info("User %s blocked user %s", blocker_id, blocked_id)
        return BlockUserResponse(blocked_user_id=blocked_id, success=True)

    async def unblock_user(self, blocker_id: int, blocked_id: int) -> bool:
        with self._unit_of_work():
            removed = self.blocks.unblock(blocker_id, blocked_id)
        if removed:
            logger.info("User %s unblocked user %s", blocker_id, blocked_id)
        return removed

    async def get_blocked_users(self, user_id: int) -> list[BlockedUserOut]:
        return [BlockedUserOut.model_validate(b) for b in self.blocks.list_blocked_by(user_id)]

    # Reporting

    async def report_message(
        self, message_id: str, reporter_id: int, reason: str
    ) -> ReportMessageResponse:
        """File a PENDING report against a message the reporter did not send.

        Raises:
            ValidationError: EMPTY_REASON, REASON_TOO_LONG or SELF_REPORT.
            NotFoundError: MESSAGE_NOT_FOUND if missing or deleted.
        """
        if not reason or not reason.strip():
            raise ValidationError("Report reason cannot be empty", "EMPTY_REASON")
        if len(reason) > MAX_REPORT_REASON_LENGTH:
            raise ValidationError(
                f"Reason cannot exceed {MAX_REPORT_REASON_LENGTH} characters",
                "REASON_TOO_LONG",
            )

        message: Message | None = self.messages.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found", "MESSAGE_NOT_FOUND")
        if message.sender_id == reporter_id:
            raise ValidationError("Cannot report your own message", "SELF_REPORT")

        with self._unit_of_work():
            report = self.reports.create(
                message_id=message_id, reporter_id=reporter_id, reason=reason
            )
        logger.info("User %s reported message %s (report %s)", reporter_id, message_id, report.id)
        return ReportMessageResponse(report_id=report.id, status=report.status)
