from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from chat_relay.api.dto import (ChatOut, ConversationInfoOut,
                                ConversationMessagesOut,
                                ConversationSummaryOut, MessageOut,
                                PaginationOut, RecentConversationsOut)
from chat_relay.api.errors import request_id_of
from chat_relay.api.requests import ChatIn
from chat_relay.infra.service import get_history_service, get_service
from chat_relay.services.history_service import HistoryService
from chat_relay.services.message_service import MessageService

router = APIRouter(prefix='/api')


@router.post('/chat', response_model=ChatOut)
async def post_chat(
    body: ChatIn,
    request: Request,
    service: MessageService = Depends(get_service),
):
    result = await service.handle(
        message=body.message,
        history=body.history,
        user_id=body.user_id,
        conversation_id=body.conversation_id,
        request_id=request_id_of(request),
    )
    return ChatOut(reply=result['reply'], conversation_id=result['conversation_id'])


@router.get('/conversation-messages', response_model=ConversationMessagesOut)
async def get_conversation_messages(
    conversation_id: Optional[str] = Query(default=None, alias='id'),
    service: HistoryService = Depends(get_history_service),
):
    result = await service.conversation_messages(conversation_id)
    return ConversationMessagesOut(
        conversation=ConversationInfoOut.from_domain(result['conversation']),
        messages=[MessageOut.from_domain(m) for m in result['messages']],
    )


@router.get('/conversations/recent', response_model=RecentConversationsOut)
async def get_recent_conversations(
    user_id: Optional[str] = Query(default=None, alias='userId'),
    page: int = 1,
    limit: int = 10,
    service: HistoryService = Depends(get_history_service),
):
    result = await service.recent_conversations(user_id, page=page, limit=limit)
    return RecentConversationsOut(
        conversations=[ConversationSummaryOut.from_domain(c) for c in result['conversations']],
        pagination=PaginationOut(
            total=result['total'],
            page=result['page'],
            limit=result['limit'],
            total_pages=result['total_pages'],
        ),
    )
