# SPDX-License-Identifier: Apache-2.0
"""Campus assistant chat."""
import httpx
from fastapi import APIRouter, Depends, Request

from campusconnect.core.auth import Caller, get_current_user
from campusconnect.core.security import rate_limit
from campusconnect.schemas import ChatReply, ChatRequest
from campusconnect.services.chatbot_service import ChatbotService

router = APIRouter(tags=["chatbot"])


def get_chatbot_http(request: Request) -> httpx.Client:
    return request.app.state.chatbot_http


@router.post("", response_model=ChatReply)
@rate_limit("60/hour")
def chat(
    request: Request,
    body: ChatRequest,
    caller: Caller = Depends(get_current_user),
    http: httpx.Client = Depends(get_chatbot_http),
):
    return ChatbotService(http).reply(body.message, body.history)
