# SPDX-License-Identifier: Apache-2.0
"""Health endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy import text

from campusconnect.database import Store, get_store

router = APIRouter(tags=["system"])


@router.get("/health")
def health(store: Store = Depends(get_store)):
    """Liveness/readiness: the store answers a trivial query."""
    with store.session() as session:
        session.exec(text("SELECT 1"))
    return {"status": "ok"}
