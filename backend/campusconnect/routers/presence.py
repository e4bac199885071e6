# SPDX-License-Identifier: Apache-2.0
"""Heartbeat-driven presence."""
from fastapi import APIRouter, Depends

from campusconnect.core.auth import Caller, get_current_user
from campusconnect.database import Store, get_store
from campusconnect.schemas import Presence
from campusconnect.services.presence_service import PresenceService

router = APIRouter(tags=["presence"])


@router.post("/heartbeat")
def heartbeat(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    PresenceService(store).heartbeat(caller.id)
    return {"success": True, "online": True}


@router.post("/offline")
def offline(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    PresenceService(store).offline(caller.id)
    return {"success": True, "online": False}


@router.get("/connections/status", response_model=dict[int, Presence])
def connections_presence(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return PresenceService(store).connections_presence(caller.id)


@router.get("/{user_id}", response_model=Presence)
def user_presence(user_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return PresenceService(store).presence_of(user_id)
