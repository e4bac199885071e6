# SPDX-License-Identifier: Apache-2.0
"""Workshop listing, lifecycle transitions, participation, and session chat."""
from fastapi import APIRouter, Depends, Query

from campusconnect.core.auth import Caller, get_current_user, get_profiled_user
from campusconnect.database import Store, get_store
from campusconnect.schemas import (
    MessageCreate,
    WorkshopChatMessage,
    WorkshopCreate,
    WorkshopDetail,
    WorkshopSummary,
)
from campusconnect.services.workshop_chat_service import WorkshopChat
from campusconnect.services.workshop_service import WorkshopLifecycle

router = APIRouter(tags=["workshops"])


@router.get("", response_model=list[WorkshopSummary])
def list_workshops(
    status: str | None = Query(None),
    caller: Caller = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return WorkshopLifecycle(store).list(status)


@router.post("", response_model=WorkshopDetail, status_code=201)
def create_workshop(body: WorkshopCreate, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    lifecycle = WorkshopLifecycle(store)
    workshop = lifecycle.create(
        caller.id,
        body.title,
        body.scheduled_at,
        duration=body.duration,
        max_participants=body.max_participants,
        description=body.description,
    )
    return lifecycle.detail(workshop.id, caller.id)


@router.get("/{workshop_id}", response_model=WorkshopDetail)
def get_workshop(workshop_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return WorkshopLifecycle(store).detail(workshop_id, caller.id)


@router.post("/{workshop_id}/join")
def join_workshop(workshop_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    WorkshopLifecycle(store).join(workshop_id, caller.id)
    return {"message": "Joined workshop successfully"}


@router.post("/{workshop_id}/leave")
def leave_workshop(workshop_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    WorkshopLifecycle(store).leave(workshop_id, caller.id)
    return {"message": "Left workshop successfully"}


@router.post("/{workshop_id}/start")
def start_workshop(workshop_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    workshop = WorkshopLifecycle(store).start(workshop_id, caller.id)
    return {"message": "Workshop started", "status": workshop.status}


@router.post("/{workshop_id}/end")
def end_workshop(workshop_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    """Complete the session; every participant is marked attended and badged."""
    awarded = WorkshopLifecycle(store).end(workshop_id, caller.id)
    return {"message": "Workshop ended and badges awarded", "status": "completed", "badges_awarded": awarded}


@router.post("/{workshop_id}/attend")
def attend_workshop(workshop_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    marked = WorkshopLifecycle(store).mark_attendance(workshop_id, caller.id)
    return {"message": "Attendance marked", "attended": marked}


@router.get("/{workshop_id}/messages", response_model=list[WorkshopChatMessage])
def list_chat(
    workshop_id: int,
    since: int | None = Query(None),
    caller: Caller = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Poll with ?since=<last seen id>."""
    return WorkshopChat(store).list_messages(workshop_id, caller.id, since)


@router.post("/{workshop_id}/messages", response_model=WorkshopChatMessage, status_code=201)
def post_chat(
    workshop_id: int,
    body: MessageCreate,
    caller: Caller = Depends(get_profiled_user),
    store: Store = Depends(get_store),
):
    return WorkshopChat(store).post_message(workshop_id, caller.id, body.content)
