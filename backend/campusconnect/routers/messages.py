# SPDX-License-Identifier: Apache-2.0
"""Direct messages. Every route requires a completed profile and a live connection."""
from fastapi import APIRouter, Depends

from campusconnect.core.auth import Caller, get_profiled_user
from campusconnect.database import Store, get_store
from campusconnect.schemas import Conversation, MessageCreate, MessageOut, Thread
from campusconnect.services.messaging_service import MessagingGate

router = APIRouter(tags=["messages"])


@router.get("", response_model=list[Thread])
def list_threads(caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    return MessagingGate(store).list_threads(caller.id)


@router.get("/unread/count")
def unread_count(caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    return {"unread_count": MessagingGate(store).unread_count(caller.id)}


@router.get("/{user_id}", response_model=Conversation)
def conversation(user_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    return MessagingGate(store).conversation(caller.id, user_id)


@router.post("/{user_id}", response_model=MessageOut, status_code=201)
def send_message(
    user_id: int,
    body: MessageCreate,
    caller: Caller = Depends(get_profiled_user),
    store: Store = Depends(get_store),
):
    return MessagingGate(store).send(caller.id, user_id, body.content)


@router.put("/{user_id}/read")
def mark_read(user_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    return {"updated": MessagingGate(store).mark_read(caller.id, user_id)}
