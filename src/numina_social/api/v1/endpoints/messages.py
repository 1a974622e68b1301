"""Direct message endpoints for the Numina API."""

from __future__ import annotations

from fastapi import APIRouter, status

from numina_social.api.v1.dependencies import CurrentUserDep, MessagingServiceDep, RegistryDep
from numina_social.schemas.messaging import (
    BlockedUserOut,
    BlockUserResponse,
    ConversationListResponse,
    MessageListResponse,
    ReportMessageRequest,
    ReportMessageResponse,
    SendMessageRequest,
    SendMessageResponse,
    UnreadCountResponse,
)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/send", status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: SendMessageRequest,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> SendMessageResponse:
    """Send a direct message; the recipient is notified live if connected."""
    return await service.send_message(current_user.id, payload.recipient_id, payload.content)


@router.get("/conversations")
async def list_conversations(
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
    page: int = 1,
    page_size: int = 20,
) -> ConversationListResponse:
    """List the caller's conversations, most recent activity first."""
    return await service.get_conversations(current_user.id, page, page_size)


@router.get("/conversations/{conversation_id}")
async def list_messages(
    conversation_id: str,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
    page: int = 1,
    page_size: int = 50,
) -> MessageListResponse:
    return await service.get_messages(conversation_id, current_user.id, page, page_size)


@router.post("/conversations/{conversation_id}/mark-read")
async def mark_conversation_read(
    conversation_id: str,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> dict[str, bool]:
    updated = await service.mark_as_read(conversation_id, current_user.id)
    return {"success": True, "updated": updated}


@router.post("/conversations/{conversation_id}/archive")
async def archive_conversation(
    conversation_id: str,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> dict[str, bool]:
    """Hide a conversation from the caller's listing until it is unarchived."""
    changed = await service.archive_conversation(conversation_id, current_user.id, archived=True)
    return {"archived": True, "changed": changed}


@router.delete("/conversations/{conversation_id}/archive")
async def unarchive_conversation(
    conversation_id: str,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> dict[str, bool]:
    changed = await service.archive_conversation(conversation_id, current_user.id, archived=False)
    return {"archived": False, "changed": changed}


@router.get("/unread-count")
async def unread_count(
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> UnreadCountResponse:
    return await service.get_unread_count(current_user.id)


@router.get("/blocked")
async def list_blocked_users(
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> list[BlockedUserOut]:
    return await service.get_blocked_users(current_user.id)


@router.post("/block/{user_id}")
async def block_user(
    user_id: int,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> BlockUserResponse:
    """Block a user; messages between the two are refused in both directions."""
    return await service.block_user(current_user.id, user_id)


@router.delete("/block/{user_id}")
async def unblock_user(
    user_id: int,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> dict[str, bool]:
    removed = await service.unblock_user(current_user.id, user_id)
    return {"success": True, "removed": removed}


@router.post("/report/{message_id}", status_code=status.HTTP_201_CREATED)
async def report_message(
    message_id: str,
    payload: ReportMessageRequest,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> ReportMessageResponse:
    """File a moderation report against a message sent by someone else."""
    return await service.report_message(message_id, current_user.id, payload.reason)


@router.get("/online/{user_id}")
async def user_online_status(
    user_id: int,
    current_user: CurrentUserDep,
    registry: RegistryDep,
) -> dict[str, int | bool]:
    return {"user_id": user_id, "online": registry.is_user_online(user_id)}


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    current_user: CurrentUserDep,
    service: MessagingServiceDep,
) -> dict[str, bool]:
    """Soft-delete one of the caller's own messages."""
    deleted = await service.delete_message(message_id, current_user.id)
    return {"success": True, "deleted": deleted}
