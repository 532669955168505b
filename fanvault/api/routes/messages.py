from uuid import UUID

from fastapi import APIRouter, status

from fanvault.api.deps import Context, CurrentIdentity
from fanvault.api.schemas import ConversationCreateRequest, CountResponse, MessageCreateRequest
from fanvault.domain.entities import Conversation, Message

router = APIRouter()


@router.post("", response_model=Conversation)
def open_conversation(
    body: ConversationCreateRequest, identity: CurrentIdentity, ctx: Context
) -> Conversation:
    return ctx.messaging.get_or_create_conversation(identity, body.other_id)


@router.get("", response_model=list[Conversation])
def list_conversations(identity: CurrentIdentity, ctx: Context) -> list[Conversation]:
    return ctx.messaging.list_conversations(identity)


@router.get("/{conversation_id}/messages", response_model=list[Message])
def list_messages(conversation_id: UUID, identity: CurrentIdentity, ctx: Context) -> list[Message]:
    return ctx.messaging.list_messages(identity, conversation_id)


@router.post(
    "/{conversation_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    conversation_id: UUID,
    body: MessageCreateRequest,
    identity: CurrentIdentity,
    ctx: Context,
) -> Message:
    return ctx.messaging.send_message(identity, conversation_id, body.content)


@router.post("/{conversation_id}/read", response_model=CountResponse)
def mark_read(conversation_id: UUID, identity: CurrentIdentity, ctx: Context) -> CountResponse:
    return CountResponse(count=ctx.messaging.mark_read(identity, conversation_id))
