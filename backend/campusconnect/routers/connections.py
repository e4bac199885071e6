# SPDX-License-Identifier: Apache-2.0
"""Connection requests, accept/reject/remove, and connection lists."""
from fastapi import APIRouter, Depends

from campusconnect.core.auth import Caller, get_current_user, get_profiled_user
from campusconnect.database import Store, get_store
from campusconnect.schemas import ConnectionEntry, ConnectionStatus
from campusconnect.services.connection_service import ConnectionGraph

router = APIRouter(tags=["connections"])


@router.get("", response_model=list[ConnectionEntry])
def list_connections(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return ConnectionGraph(store).list_connections(caller.id)


@router.get("/requests", response_model=list[ConnectionEntry])
def incoming_requests(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return ConnectionGraph(store).list_incoming(caller.id)


@router.get("/sent", response_model=list[ConnectionEntry])
def sent_requests(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return ConnectionGraph(store).list_outgoing(caller.id)


@router.get("/status/{user_id}", response_model=ConnectionStatus)
def connection_status(user_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return ConnectionGraph(store).status_between(caller.id, user_id)


@router.post("/{user_id}", status_code=201)
def send_request(user_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    connection = ConnectionGraph(store).request(caller.id, user_id)
    return {"message": "Connection request sent", "connection_id": connection.id, "status": connection.status}


@router.put("/{connection_id}/accept")
def accept_request(
    connection_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)
):
    connection = ConnectionGraph(store).accept(connection_id, caller.id)
    return {"message": "Connection accepted", "connection_id": connection.id, "status": connection.status}


@router.delete("/{connection_id}")
def remove_connection(
    connection_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)
):
    """Reject a pending request or remove an accepted connection."""
    ConnectionGraph(store).remove(connection_id, caller.id)
    return {"message": "Connection removed"}
