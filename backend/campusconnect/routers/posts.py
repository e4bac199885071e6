# SPDX-License-Identifier: Apache-2.0
"""Feed, posts with optional media, likes, comments, shares."""
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from campusconnect.config import FEED_PAGE_SIZE
from campusconnect.core.auth import Caller, get_current_user, get_profiled_user
from campusconnect.core.security import rate_limit
from campusconnect.database import Store, get_store
from campusconnect.schemas import CommentCreate, PostDetail, PostOut, ShareCreate
from campusconnect.services.post_service import PostService

router = APIRouter(tags=["posts"])


@router.get("", response_model=list[PostOut])
def feed(
    hashtag: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(FEED_PAGE_SIZE, ge=1, le=100),
    caller: Caller = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return PostService(store).feed(caller.id, hashtag=hashtag, page=page, limit=limit)


@router.post("", response_model=PostOut, status_code=201)
@rate_limit("60/hour")
def create_post(
    request: Request,
    content: str = Form(""),
    media: UploadFile | None = File(None),
    caller: Caller = Depends(get_profiled_user),
    store: Store = Depends(get_store),
):
    """Multipart: content plus an optional image or video under `media`."""
    data = media.file.read() if media is not None else None
    filename = media.filename if media is not None else None
    return PostService(store).create(caller.id, content, filename, data)


@router.get("/user/{user_id}", response_model=list[PostOut])
def user_posts(user_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return PostService(store).user_posts(caller.id, user_id)


@router.get("/{post_id}", response_model=PostDetail)
def get_post(post_id: int, caller: Caller = Depends(get_current_user), store: Store = Depends(get_store)):
    return PostService(store).detail(caller.id, post_id)


@router.delete("/{post_id}")
def delete_post(post_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    PostService(store).delete(caller.id, post_id)
    return {"message": "Post deleted successfully"}


@router.post("/{post_id}/like")
def like_post(post_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    count = PostService(store).like(caller.id, post_id)
    return {"message": "Post liked", "like_count": count, "user_liked": True}


@router.delete("/{post_id}/like")
def unlike_post(post_id: int, caller: Caller = Depends(get_profiled_user), store: Store = Depends(get_store)):
    count = PostService(store).unlike(caller.id, post_id)
    return {"message": "Like removed", "like_count": count, "user_liked": False}


@router.post("/{post_id}/comments", status_code=201)
def add_comment(
    post_id: int,
    body: CommentCreate,
    caller: Caller = Depends(get_profiled_user),
    store: Store = Depends(get_store),
):
    comment, count = PostService(store).comment(caller.id, post_id, body.content)
    return {"comment": comment.model_dump(mode="json"), "comment_count": count}


@router.post("/{post_id}/share", status_code=201)
def share_post(
    post_id: int,
    body: ShareCreate | None = None,
    caller: Caller = Depends(get_profiled_user),
    store: Store = Depends(get_store),
):
    """Shares of shares point at the root post."""
    post, share_count = PostService(store).share(caller.id, post_id, body.content if body else None)
    return {**post.model_dump(mode="json"), "original_share_count": share_count}
