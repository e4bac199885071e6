# SPDX-License-Identifier: Apache-2.0
"""Badge catalog, badge holdings, manual awards."""
from fastapi import APIRouter, Depends

from campusconnect.core.auth import Caller, get_current_user, get_profiled_user
from campusconnect.database import Store, get_store
from campusconnect.schemas import BadgeAward, BadgeOut, UserBadgeOut
from campusconnect.services.badge_service import BadgeService

router = APIRouter(tags=["badges"])


@router.get("", response_model=list[BadgeOut])
def list_badges(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return BadgeService(store).catalog()


@router.get("/my", response_model=list[UserBadgeOut])
def my_badges(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return BadgeService(store).badges_for(caller.id)


@router.get("/user/{user_id}", response_model=list[UserBadgeOut])
def user_badges(user_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return BadgeService(store).badges_for(user_id)


@router.post("/award", status_code=201)
def award_badge(body: BadgeAward, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    BadgeService(store).award_manually(caller, body.user_id, body.badge_name, body.workshop_id)
    return {"message": "Badge awarded successfully"}
