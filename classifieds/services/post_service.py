"""
Post service: the account's own listings (online, archived, pending).
"""

import logging
from typing import Iterable, Optional

from ..domain.models import Post, PostStatus, now_utc
from ..infrastructure.kuzu_repositories import KuzuPostRepository, KuzuSavedPostRepository
from ..utils.pagination import Page
from .errors import AccountError, NotFoundError

logger = logging.getLogger(__name__)


class PostService:
    """Service for the posts a user owns."""

    def __init__(self):
        self.post_repo = KuzuPostRepository()
        self.saved_post_repo = KuzuSavedPostRepository()

    def create_post(self, user_id: int, title: str, description: str = "", price: Optional[float] = None,
                    category: Optional[str] = None, city: Optional[str] = None,
                    reviewed: bool = True) -> Post:
        if not title or not title.strip():
            raise AccountError('A post needs a title.')
        post = Post(user_id=user_id, title=title.strip(), description=description, price=price,
                    category=category, city=city, reviewed_at=now_utc() if reviewed else None)
        return self.post_repo.create(post)

    def get_post(self, post_id: int) -> Optional[Post]:
        return self.post_repo.get_by_id(post_id)

    def get_user_post(self, user_id: int, post_id: int, status: Optional[PostStatus] = None) -> Post:
        """Return a post the user owns, optionally in one status, or raise NotFoundError."""
        post = self.post_repo.get_by_id(post_id)
        if post is None or post.user_id != user_id:
            raise NotFoundError('Post not found.')
        if status is not None and post.status is not status:
            raise NotFoundError('Post not found.')
        return post

    def list_posts(self, user_id: int, status: PostStatus, page: int = 1, per_page: int = 10) -> Page:
        total = self.post_repo.count_for_user(user_id, status)
        page_info = Page(items=[], page=page, per_page=per_page, total=total)
        page_info.items = self.post_repo.list_for_user(user_id, status, limit=per_page,
                                                       offset=page_info.offset)
        return page_info

    def count_posts(self, user_id: int, status: PostStatus) -> int:
        return self.post_repo.count_for_user(user_id, status)

    def take_offline(self, user_id: int, post_id: int) -> Post:
        post = self.get_user_post(user_id, post_id, PostStatus.ONLINE)
        post.archived_at = now_utc()
        post.updated_at = post.archived_at
        self.post_repo.update(post)
        logger.info(f"Post {post_id} taken offline by user {user_id}")
        return post

    def repost(self, user_id: int, post_id: int) -> Post:
        post = self.get_user_post(user_id, post_id, PostStatus.ARCHIVED)
        post.archived_at = None
        post.updated_at = now_utc()
        self.post_repo.update(post)
        logger.info(f"Post {post_id} reposted by user {user_id}")
        return post

    def delete_posts(self, user_id: int, status: PostStatus, post_ids: Iterable[int]) -> int:
        """Delete the user's posts in one scope; ids outside it are ignored."""
        deleted = 0
        for post_id in post_ids:
            post = self.post_repo.get_by_id(post_id)
            if post is None or post.user_id != user_id or post.status is not status:
                continue
            self.saved_post_repo.delete_for_post(post.id)
            if self.post_repo.delete(post.id):
                deleted += 1
        logger.info(f"User {user_id} deleted {deleted} {status.value} post(s)")
        return deleted

