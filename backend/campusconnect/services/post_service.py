# SPDX-License-Identifier: Apache-2.0
"""Feed posts with likes, comments and shares."""
from __future__ import annotations

import logging
import re

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from campusconnect.config import FEED_PAGE_SIZE
from campusconnect.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from campusconnect.database import Store
from campusconnect.models import Comment, Like, Post, Share, User
from campusconnect.schemas import CommentOut, OriginalPost, PostDetail, PostOut
from campusconnect.services import media_service

logger = logging.getLogger(__name__)

HASHTAG_RE = re.compile(r"#(\w+)")


def extract_hashtags(content: str | None) -> list[str]:
    return [tag.lower() for tag in HASHTAG_RE.findall(content or "")]


def _grouped_counts(session: Session, model, post_ids: list[int]) -> dict[int, int]:
    rows = session.exec(
        select(model.post_id, func.count(model.id)).where(model.post_id.in_(post_ids)).group_by(model.post_id)
    ).all()
    return {post_id: n for post_id, n in rows}


def _users_by_id(session: Session, user_ids) -> dict[int, User]:
    user_ids = set(user_ids)
    if not user_ids:
        return {}
    return {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids)))}


def _comment_out(comment: Comment, author: User, viewer_id: int) -> CommentOut:
    return CommentOut(
        id=comment.id,
        content=comment.content,
        created_at=comment.created_at,
        user_id=comment.user_id,
        author_name=author.name,
        author_photo=author.profile_photo,
        is_own_comment=comment.user_id == viewer_id,
    )


def build_post_outs(session: Session, posts: list[Post], viewer_id: int) -> list[PostOut]:
    """Render a page of posts. Counters come from one grouped query per child table."""
    if not posts:
        return []
    ids = [p.id for p in posts]
    likes = _grouped_counts(session, Like, ids)
    comments = _grouped_counts(session, Comment, ids)
    shares = _grouped_counts(session, Share, ids)
    liked = set(session.exec(select(Like.post_id).where(Like.post_id.in_(ids), Like.user_id == viewer_id)).all())
    original_ids = {p.original_post_id for p in posts if p.original_post_id}
    originals = (
        {o.id: o for o in session.exec(select(Post).where(Post.id.in_(original_ids)))} if original_ids else {}
    )
    authors = _users_by_id(session, [p.user_id for p in posts] + [o.user_id for o in originals.values()])

    result = []
    for post in posts:
        author = authors[post.user_id]
        original = originals.get(post.original_post_id)
        original_out = None
        if original is not None:
            original_author = authors[original.user_id]
            original_out = OriginalPost(
                id=original.id,
                content=original.content,
                image=original.image,
                media_type=original.media_type,
                created_at=original.created_at,
                author_id=original_author.id,
                author_name=original_author.name,
                author_photo=original_author.profile_photo,
            )
        result.append(
            PostOut(
                id=post.id,
                user_id=post.user_id,
                content=post.content,
                image=post.image,
                media_type=post.media_type,
                created_at=post.created_at,
                author_name=author.name,
                author_photo=author.profile_photo,
                like_count=likes.get(post.id, 0),
                comment_count=comments.get(post.id, 0),
                share_count=shares.get(post.id, 0),
                user_liked=post.id in liked,
                hashtags=extract_hashtags(post.content),
                is_own_post=post.user_id == viewer_id,
                original_post=original_out,
            )
        )
    return result


def _get_post(session: Session, post_id: int) -> Post:
    post = session.get(Post, post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


def _like_count(session: Session, post_id: int) -> int:
    return session.exec(select(func.count(Like.id)).where(Like.post_id == post_id)).one()


class PostService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def feed(
        self, viewer_id: int, hashtag: str | None = None, page: int = 1, limit: int = FEED_PAGE_SIZE
    ) -> list[PostOut]:
        query = select(Post)
        if hashtag:
            query = query.where(func.lower(Post.content).like(f"%#{hashtag.lstrip('#').lower()}%"))
        query = query.order_by(Post.created_at.desc(), Post.id.desc()).offset((page - 1) * limit).limit(limit)
        with self.store.session() as session:
            return build_post_outs(session, list(session.exec(query).all()), viewer_id)

    def user_posts(self, viewer_id: int, user_id: int) -> list[PostOut]:
        with self.store.session() as session:
            if session.get(User, user_id) is None:
                raise NotFound("User not found")
            posts = session.exec(
                select(Post).where(Post.user_id == user_id).order_by(Post.created_at.desc(), Post.id.desc())
            ).all()
            return build_post_outs(session, list(posts), viewer_id)

    def create(
        self, user_id: int, content: str | None, filename: str | None = None, media: bytes | None = None
    ) -> PostOut:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Post content is required")
        image = media_type = None
        if media:
            image, media_type = media_service.save_post_media(filename, media)
        try:
            with self.store.transaction() as session:
                post = Post(user_id=user_id, content=content, image=image, media_type=media_type)
                session.add(post)
                session.flush()
                session.refresh(post)
                out = build_post_outs(session, [post], user_id)[0]
        except Exception:
            if image:
                media_service.remove_file(image)
            raise
        logger.info("Post %s created by %s", post.id, user_id)
        return out

    def detail(self, viewer_id: int, post_id: int) -> PostDetail:
        with self.store.session() as session:
            post = _get_post(session, post_id)
            out = build_post_outs(session, [post], viewer_id)[0]
            rows = session.exec(
                select(Comment, User)
                .join(User, User.id == Comment.user_id)
                .where(Comment.post_id == post_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
            ).all()
        return PostDetail(**out.model_dump(), comments=[_comment_out(c, u, viewer_id) for c, u in rows])

    def delete(self, user_id: int, post_id: int) -> None:
        with self.store.transaction() as session:
            post = _get_post(session, post_id)
            if post.user_id != user_id:
                raise Forbidden("You can only delete your own posts")
            image = post.image
            session.delete(post)
        if image:
            media_service.remove_file(image)
        logger.info("Post %s deleted by %s", post_id, user_id)

    def like(self, user_id: int, post_id: int) -> int:
        """Returns the new like count."""
        with self.store.transaction() as session:
            _get_post(session, post_id)
            existing = session.exec(select(Like.id).where(Like.post_id == post_id, Like.user_id == user_id)).first()
            if existing is not None:
                raise Conflict("You have already liked this post")
            session.add(Like(post_id=post_id, user_id=user_id))
            try:
                session.flush()
            except IntegrityError:
                raise Conflict("You have already liked this post")
            return _like_count(session, post_id)

    def unlike(self, user_id: int, post_id: int) -> int:
        with self.store.transaction() as session:
            result = session.exec(delete(Like).where(Like.post_id == post_id, Like.user_id == user_id))
            if result.rowcount == 0:
                raise ValidationError("You have not liked this post")
            return _like_count(session, post_id)

    def comment(self, user_id: int, post_id: int, content: str | None) -> tuple[CommentOut, int]:
        """Returns the new comment and the post's comment count."""
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment content is required")
        with self.store.transaction() as session:
            _get_post(session, post_id)
            comment = Comment(post_id=post_id, user_id=user_id, content=content)
            session.add(comment)
            session.flush()
            session.refresh(comment)
            count = session.exec(select(func.count(Comment.id)).where(Comment.post_id == post_id)).one()
            author = session.get(User, user_id)
        return _comment_out(comment, author, user_id), count

    def share(self, user_id: int, post_id: int, content: str | None = None) -> tuple[PostOut, int]:
        """Repost the root of post_id's share chain. Returns the new post and the root's share count."""
        with self.store.transaction() as session:
            shared = _get_post(session, post_id)
            root_id = shared.original_post_id or shared.id
            session.add(Share(post_id=root_id, user_id=user_id))
            repost = Post(user_id=user_id, content=(content or "").strip(), original_post_id=root_id)
            session.add(repost)
            session.flush()
            session.refresh(repost)
            out = build_post_outs(session, [repost], user_id)[0]
            share_count = session.exec(select(func.count(Share.id)).where(Share.post_id == root_id)).one()
        logger.info("Post %s shared by %s as %s", root_id, user_id, repost.id)
        return out, share_count
