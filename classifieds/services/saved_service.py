"""
Saved posts and saved searches.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import parse_qs, urlencode

from ..domain.models import SavedPost, SavedSearch, PostStatus
from ..infrastructure.kuzu_repositories import (
    KuzuPostRepository, KuzuSavedPostRepository, KuzuSavedSearchRepository
)
from ..utils.pagination import Page
from .errors import AccountError, NotFoundError

logger = logging.getLogger(__name__)

# Query string keys understood by the post search
SEARCH_KEYS = ('q', 'c', 'l')


def parse_search_query(query_string: str) -> Dict[str, str]:
    """Keep the search keys of a query string, first value wins."""
    parsed = parse_qs((query_string or '').lstrip('?'), keep_blank_values=False)
    return {key: parsed[key][0].strip() for key in SEARCH_KEYS if key in parsed and parsed[key][0].strip()}


def normalize_search_query(query_string: str) -> str:
    """Canonical form used to detect duplicate saved searches."""
    return urlencode(sorted(parse_search_query(query_string).items()))


class SavedPostService:
    """Posts a user has bookmarked."""

    def __init__(self):
        self.saved_repo = KuzuSavedPostRepository()
        self.post_repo = KuzuPostRepository()

    def toggle(self, user_id: int, post_id: int) -> bool:
        """Save or unsave a post; returns whether it is saved afterwards."""
        existing = self.saved_repo.find(user_id, post_id)
        if existing:
            self.saved_repo.delete(existing.id)
            logger.info(f"User {user_id} unsaved post {post_id}")
            return False
        post = self.post_repo.get_by_id(post_id)
        if post is None or post.status is not PostStatus.ONLINE:
            raise NotFoundError('Post not found.')
        self.saved_repo.create(SavedPost(user_id=user_id, post_id=post_id))
        logger.info(f"User {user_id} saved post {post_id}")
        return True

    def list_saved(self, user_id: int, page: int = 1, per_page: int = 10) -> Page:
        total = self.saved_repo.count_for_user(user_id)
        result = Page(items=[], page=page, per_page=per_page, total=total)
        entries = self.saved_repo.list_for_user(user_id, limit=per_page, offset=result.offset)
        for entry in entries:
            entry.post = self.post_repo.get_by_id(entry.post_id)
        result.items = entries
        return result

    def count_saved(self, user_id: int) -> int:
        return self.saved_repo.count_for_user(user_id)

    def get_user_entry(self, user_id: int, saved_id: int) -> SavedPost:
        entry = self.saved_repo.get_by_id(saved_id)
        if entry is None or entry.user_id != user_id:
            raise NotFoundError('Saved post not found.')
        entry.post = self.post_repo.get_by_id(entry.post_id)
        return entry

    def delete_entries(self, user_id: int, saved_ids: Iterable[int]) -> int:
        deleted = 0
        for saved_id in saved_ids:
            entry = self.saved_repo.get_by_id(saved_id)
            if entry is None or entry.user_id != user_id:
                continue
            if self.saved_repo.delete(entry.id):
                deleted += 1
        return deleted


class SavedSearchService:
    """Searches a user has stored to re-run later."""

    def __init__(self):
        self.search_repo = KuzuSavedSearchRepository()
        self.post_repo = KuzuPostRepository()

    def _criteria(self, query_string: str) -> Tuple[str, Optional[str], Optional[str]]:
        params = parse_search_query(query_string)
        return params.get('q', ''), params.get('c'), params.get('l')

    def store(self, user_id: int, query_string: str) -> Tuple[SavedSearch, bool]:
        """Store a search; returns the entry and whether it was newly created."""
        normalized = normalize_search_query(query_string)
        if not normalized:
            raise AccountError('There is no search to save.')
        keyword, category, city = self._criteria(normalized)
        result_count = self.post_repo.count_search(keyword, category, city)

        existing = self.search_repo.find(user_id, normalized)
        if existing:
            existing.result_count = result_count
            self.search_repo.update(existing)
            return existing, False

        label = keyword or category or city or ''
        search = SavedSearch(user_id=user_id, keyword=label, query_string=normalized,
                             result_count=result_count)
        self.search_repo.create(search)
        logger.info(f"User {user_id} saved search '{normalized}'")
        return search, True

    def list_searches(self, user_id: int, page: int = 1, per_page: int = 10) -> Page:
        total = self.search_repo.count_for_user(user_id)
        result = Page(items=[], page=page, per_page=per_page, total=total)
        result.items = self.search_repo.list_for_user(user_id, limit=per_page, offset=result.offset)
        return result

    def count_searches(self, user_id: int) -> int:
        return self.search_repo.count_for_user(user_id)

    def get_user_search(self, user_id: int, search_id: int) -> SavedSearch:
        search = self.search_repo.get_by_id(search_id)
        if search is None or search.user_id != user_id:
            raise NotFoundError('Saved search not found.')
        return search

    def run(self, search: SavedSearch, limit: int = 50):
        """Re-run a saved search and refresh its result count."""
        keyword, category, city = self._criteria(search.query_string)
        posts = self.post_repo.search(keyword, category, city, limit=limit)
        total = self.post_repo.count_search(keyword, category, city)
        if total != search.result_count:
            search.result_count = total
            self.search_repo.update(search)
        return posts

    def delete_searches(self, user_id: int, search_ids: Iterable[int]) -> int:
        deleted = 0
        for search_id in search_ids:
            search = self.search_repo.get_by_id(search_id)
            if search is None or search.user_id != user_id:
                continue
            if self.search_repo.delete(search.id):
                deleted += 1
        return deleted
