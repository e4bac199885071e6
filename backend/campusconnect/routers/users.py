# SPDX-License-Identifier: Apache-2.0
"""Own profile, photo upload, user search, public profiles."""
from fastapi import APIRouter, Depends, File, Query, UploadFile

from campusconnect.core.auth import Caller, get_current_user
from campusconnect.database import Store, get_store
from campusconnect.schemas import ProfileUpdate, PublicProfile, SearchResult, UserProfile
from campusconnect.services.identity_service import IdentityService

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserProfile)
def get_me(caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return IdentityService(store).get_profile(caller.id)


@router.put("/me", response_model=UserProfile)
def update_me(
    body: ProfileUpdate,
    caller: Caller = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return IdentityService(store).update_profile(caller.id, body)


@router.post("/me/photo")
def upload_photo(
    photo: UploadFile = File(...),
    caller: Caller = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Replace the profile photo; .jpg/.jpeg/.png only."""
    contents = photo.file.read()
    path = IdentityService(store).set_photo(caller.id, photo.filename, contents)
    return {"message": "Profile photo updated", "profile_photo": path}


@router.get("/search", response_model=list[SearchResult])
def search_users(
    q: str = Query(""),
    caller: Caller = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return IdentityService(store).search(caller.id, q)


@router.get("/{user_id}", response_model=PublicProfile)
def get_user(user_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return IdentityService(store).public_profile(caller.id, user_id)
