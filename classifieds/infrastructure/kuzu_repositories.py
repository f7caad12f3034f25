"""
Kuzu repositories for the account area.

Each repository maps one node table (see ``kuzu_schema.NODE_TABLES``) to a
domain dataclass. Queries bind every value as a parameter; ``None`` values
are written as literal NULLs because Kuzu cannot infer a parameter type from
``None``.
"""

import logging
from dataclasses import fields as dataclass_fields
from dataclasses import MISSING
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from ..domain.models import (
    User, Post, PostStatus, SavedPost, SavedSearch, Thread, ThreadMessage,
    ThreadParticipant, Package, Payment, LinkedAccount, as_utc
)
from ..domain.repositories import (
    UserRepository, PostRepository, SavedPostRepository, SavedSearchRepository,
    ThreadRepository, PackageRepository, PaymentRepository, LinkedAccountRepository
)
from .kuzu_manager import KuzuManager, get_kuzu_manager
from .kuzu_schema import NODE_TABLES

logger = logging.getLogger(__name__)

T = TypeVar('T')

_POST_STATUS_FILTERS = {
    PostStatus.ONLINE: "n.reviewed_at IS NOT NULL AND n.archived_at IS NULL",
    PostStatus.ARCHIVED: "n.reviewed_at IS NOT NULL AND n.archived_at IS NOT NULL",
    PostStatus.PENDING: "n.reviewed_at IS NULL",
}


def _to_db(value: Any) -> Any:
    """Convert a model value into something Kuzu can bind."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        # TIMESTAMP columns hold naive UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return value


class KuzuNodeRepository:
    """Shared CRUD helpers for a single node table."""

    table: str = ""
    model: Type[Any] = object

    def __init__(self, manager: Optional[KuzuManager] = None):
        self._manager = manager

    @property
    def manager(self) -> KuzuManager:
        return self._manager or get_kuzu_manager()

    @property
    def columns(self) -> Dict[str, str]:
        return NODE_TABLES[self.table]

    def _from_node(self, node: Dict[str, Any]) -> Any:
        kwargs: Dict[str, Any] = {}
        for f in dataclass_fields(self.model):
            if f.name not in self.columns or not f.init:
                continue
            value = node.get(f.name)
            if value is None:
                # NULL column falls back to the dataclass default
                if f.default is MISSING and f.default_factory is MISSING:
                    kwargs[f.name] = None
                continue
            if isinstance(value, datetime):
                value = as_utc(value)
            kwargs[f.name] = value
        return self.model(**kwargs)

    def _rows_to_models(self, rows: List[Dict[str, Any]]) -> List[Any]:
        return [self._from_node(row['n']) for row in rows]

    def _insert(self, entity: T) -> T:
        entity.id = self.manager.next_id(self.table)  # type: ignore[attr-defined]
        params: Dict[str, Any] = {}
        assignments: List[str] = []
        for column in self.columns:
            value = _to_db(getattr(entity, column, None))
            if value is None:
                continue
            params[f"p_{column}"] = value
            assignments.append(f"{column}: $p_{column}")
        query = f"CREATE (n:{self.table} {{{', '.join(assignments)}}})"
        self.manager.execute(query, params, operation=f"create:{self.table}")
        return entity

    def _save(self, entity: T) -> T:
        params: Dict[str, Any] = {"node_id": getattr(entity, 'id')}
        assignments: List[str] = []
        for column in self.columns:
            if column == "id":
                continue
            value = _to_db(getattr(entity, column, None))
            if value is None:
                assignments.append(f"n.{column} = NULL")
            else:
                params[f"p_{column}"] = value
                assignments.append(f"n.{column} = $p_{column}")
        query = f"MATCH (n:{self.table}) WHERE n.id = $node_id SET {', '.join(assignments)}"
        self.manager.execute(query, params, operation=f"update:{self.table}")
        return entity

    def _select(self, where: str = "", params: Optional[Dict[str, Any]] = None,
                order: str = "DESC", sort_column: str = "created_at",
                limit: Optional[int] = None, offset: int = 0) -> List[Any]:
        direction = "ASC" if order.upper() == "ASC" else "DESC"
        if sort_column not in self.columns:
            sort_column = "id"
        query = f"MATCH (n:{self.table})"
        if where:
            query += f" WHERE {where}"
        query += (f" RETURN n, n.{sort_column} AS sort_key, n.id AS sort_id"
                  f" ORDER BY sort_key {direction}, sort_id {direction}")
        if offset:
            query += f" SKIP {int(offset)}"
        if limit is not None:
            query += f" LIMIT {int(limit)}"
        rows = self.manager.execute(query, params, operation=f"select:{self.table}")
        return self._rows_to_models(rows)

    def _first(self, where: str, params: Dict[str, Any]) -> Optional[Any]:
        found = self._select(where, params, limit=1)
        return found[0] if found else None

    def _count(self, where: str = "", params: Optional[Dict[str, Any]] = None) -> int:
        query = f"MATCH (n:{self.table})"
        if where:
            query += f" WHERE {where}"
        query += " RETURN COUNT(n) AS total"
        return int(self.manager.scalar(query, params, operation=f"count:{self.table}") or 0)

    def _delete_where(self, where: str, params: Dict[str, Any]) -> int:
        total = self._count(where, params)
        if total:
            self.manager.execute(f"MATCH (n:{self.table}) WHERE {where} DELETE n", params,
                                 operation=f"delete:{self.table}")
        return total

    def _get(self, entity_id: int) -> Optional[Any]:
        return self._first("n.id = $node_id", {"node_id": int(entity_id)})

    def _delete(self, entity_id: int) -> bool:
        return self._delete_where("n.id = $node_id", {"node_id": int(entity_id)}) > 0


class KuzuUserRepository(KuzuNodeRepository, UserRepository):
    table = "User"
    model = User

    def create(self, user: User) -> User:
        return self._insert(user)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._first("lower(n.email) = $email", {"email": email.strip().lower()})

    def get_by_username(self, username: str) -> Optional[User]:
        return self._first("lower(n.username) = $username", {"username": username.strip().lower()})

    def get_by_phone(self, phone: str) -> Optional[User]:
        return self._first("n.phone = $phone", {"phone": phone.strip()})

    def update(self, user: User) -> User:
        return self._save(user)

    def delete(self, user_id: int) -> bool:
        return self._delete(user_id)

    def count(self) -> int:
        return self._count()


class KuzuPostRepository(KuzuNodeRepository, PostRepository):
    table = "Post"
    model = Post

    def create(self, post: Post) -> Post:
        return self._insert(post)

    def get_by_id(self, post_id: int) -> Optional[Post]:
        return self._get(post_id)

    def list_for_user(self, user_id: int, status: PostStatus, limit: int, offset: int = 0) -> List[Post]:
        where = f"n.user_id = $user_id AND {_POST_STATUS_FILTERS[status]}"
        return self._select(where, {"user_id": int(user_id)}, limit=limit, offset=offset)

    def count_for_user(self, user_id: int, status: PostStatus) -> int:
        where = f"n.user_id = $user_id AND {_POST_STATUS_FILTERS[status]}"
        return self._count(where, {"user_id": int(user_id)})

    def _search_clause(self, keyword: str, category: Optional[str], city: Optional[str]):
        clauses = [_POST_STATUS_FILTERS[PostStatus.ONLINE]]
        params: Dict[str, Any] = {}
        if keyword:
            clauses.append("(lower(n.title) CONTAINS $keyword OR lower(n.description) CONTAINS $keyword)")
            params["keyword"] = keyword.strip().lower()
        if category:
            clauses.append("lower(n.category) = $category")
            params["category"] = category.strip().lower()
        if city:
            clauses.append("lower(n.city) = $city")
            params["city"] = city.strip().lower()
        return " AND ".join(clauses), params

    def search(self, keyword: str = "", category: Optional[str] = None,
               city: Optional[str] = None, limit: int = 50) -> List[Post]:
        where, params = self._search_clause(keyword, category, city)
        return self._select(where, params, limit=limit)

    def count_search(self, keyword: str = "", category: Optional[str] = None,
                     city: Optional[str] = None) -> int:
        where, params = self._search_clause(keyword, category, city)
        return self._count(where, params)

    def update(self, post: Post) -> Post:
        return self._save(post)

    def delete(self, post_id: int) -> bool:
        return self._delete(post_id)

    def delete_for_user(self, user_id: int) -> int:
        return self._delete_where("n.user_id = $user_id", {"user_id": int(user_id)})

    def list_ids_for_user(self, user_id: int) -> List[int]:
        rows = self.manager.execute("MATCH (n:Post) WHERE n.user_id = $user_id RETURN n.id AS post_id",
                                    {"user_id": int(user_id)}, operation="post_ids_for_user")
        return [int(row['post_id']) for row in rows]


class KuzuSavedPostRepository(KuzuNodeRepository, SavedPostRepository):
    table = "SavedPost"
    model = SavedPost

    def create(self, saved: SavedPost) -> SavedPost:
        return self._insert(saved)

    def get_by_id(self, saved_id: int) -> Optional[SavedPost]:
        return self._get(saved_id)

    def find(self, user_id: int, post_id: int) -> Optional[SavedPost]:
        return self._first("n.user_id = $user_id AND n.post_id = $post_id",
                           {"user_id": int(user_id), "post_id": int(post_id)})

    def list_for_user(self, user_id: int, limit: int, offset: int = 0) -> List[SavedPost]:
        return self._select("n.user_id = $user_id", {"user_id": int(user_id)}, limit=limit, offset=offset)

    def count_for_user(self, user_id: int) -> int:
        return self._count("n.user_id = $user_id", {"user_id": int(user_id)})

    def delete(self, saved_id: int) -> bool:
        return self._delete(saved_id)

    def delete_for_post(self, post_id: int) -> int:
        return self._delete_where("n.post_id = $post_id", {"post_id": int(post_id)})

    def delete_for_user(self, user_id: int) -> int:
        return self._delete_where("n.user_id = $user_id", {"user_id": int(user_id)})


class KuzuSavedSearchRepository(KuzuNodeRepository, SavedSearchRepository):
    table = "SavedSearch"
    model = SavedSearch

    def create(self, search: SavedSearch) -> SavedSearch:
        return self._insert(search)

    def get_by_id(self, search_id: int) -> Optional[SavedSearch]:
        return self._get(search_id)

    def find(self, user_id: int, query_string: str) -> Optional[SavedSearch]:
        return self._first("n.user_id = $user_id AND n.query_string = $query_string",
                           {"user_id": int(user_id), "query_string": query_string})

    def list_for_user(self, user_id: int, limit: int, offset: int = 0) -> List[SavedSearch]:
        return self._select("n.user_id = $user_id", {"user_id": int(user_id)}, limit=limit, offset=offset)

    def count_for_user(self, user_id: int) -> int:
        return self._count("n.user_id = $user_id", {"user_id": int(user_id)})

    def update(self, search: SavedSearch) -> SavedSearch:
        return self._save(search)

    def delete(self, search_id: int) -> bool:
        return self._delete(search_id)

    def delete_for_user(self, user_id: int) -> int:
        return self._delete_where("n.user_id = $user_id", {"user_id": int(user_id)})


class _KuzuThreadTable(KuzuNodeRepository):
    table = "Thread"
    model = Thread


class _KuzuThreadMessageTable(KuzuNodeRepository):
    table = "ThreadMessage"
    model = ThreadMessage


class _KuzuThreadParticipantTable(KuzuNodeRepository):
    table = "ThreadParticipant"
    model = ThreadParticipant


class KuzuThreadRepository(ThreadRepository):
    """Threads, their messages and participants (three node tables)."""

    def __init__(self, manager: Optional[KuzuManager] = None):
        self._threads = _KuzuThreadTable(manager)
        self._messages = _KuzuThreadMessageTable(manager)
        self._participants = _KuzuThreadParticipantTable(manager)

    def create_thread(self, thread: Thread) -> Thread:
        return self._threads._insert(thread)

    def get_thread(self, thread_id: int) -> Optional[Thread]:
        return self._threads._get(thread_id)

    def update_thread(self, thread: Thread) -> Thread:
        return self._threads._save(thread)

    def add_message(self, message: ThreadMessage) -> ThreadMessage:
        return self._messages._insert(message)

    def list_messages(self, thread_id: int) -> List[ThreadMessage]:
        return self._messages._select("n.thread_id = $thread_id", {"thread_id": int(thread_id)}, order="ASC")

    def add_participant(self, participant: ThreadParticipant) -> ThreadParticipant:
        return self._participants._insert(participant)

    def get_participant(self, thread_id: int, user_id: int) -> Optional[ThreadParticipant]:
        return self._participants._first("n.thread_id = $thread_id AND n.user_id = $user_id",
                                         {"thread_id": int(thread_id), "user_id": int(user_id)})

    def list_participants(self, thread_id: int) -> List[ThreadParticipant]:
        return self._participants._select("n.thread_id = $thread_id", {"thread_id": int(thread_id)},
                                          sort_column="id", order="ASC")

    def list_participations(self, user_id: int) -> List[ThreadParticipant]:
        return self._participants._select("n.user_id = $user_id AND n.deleted_at IS NULL",
                                          {"user_id": int(user_id)}, sort_column="id")

    def update_participant(self, participant: ThreadParticipant) -> ThreadParticipant:
        return self._participants._save(participant)

    def delete_participations_for_user(self, user_id: int) -> int:
        return self._participants._delete_where("n.user_id = $user_id", {"user_id": int(user_id)})

    def anonymize_messages_for_user(self, user_id: int, sender_name: str) -> int:
        params = {"user_id": int(user_id)}
        total = self._messages._count("n.user_id = $user_id", params)
        if total:
            self._messages.manager.execute(
                "MATCH (n:ThreadMessage) WHERE n.user_id = $user_id "
                "SET n.user_id = NULL, n.sender_name = $sender_name, "
                "n.sender_email = NULL, n.sender_phone = NULL",
                dict(params, sender_name=sender_name), operation="anonymize:ThreadMessage")
        return total


class KuzuPackageRepository(KuzuNodeRepository, PackageRepository):
    table = "Package"
    model = Package

    def create(self, package: Package) -> Package:
        return self._insert(package)

    def get_by_id(self, package_id: int) -> Optional[Package]:
        return self._get(package_id)

    def list_active(self) -> List[Package]:
        return self._select("n.is_active = true", sort_column="price", order="ASC")

    def count(self) -> int:
        return self._count()


class KuzuPaymentRepository(KuzuNodeRepository, PaymentRepository):
    table = "Payment"
    model = Payment

    def create(self, payment: Payment) -> Payment:
        return self._insert(payment)

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        return self._get(payment_id)

    def _user_clause(self, user_id: int, payable_type: Optional[str]):
        where = "n.user_id = $user_id"
        params: Dict[str, Any] = {"user_id": int(user_id)}
        if payable_type:
            where += " AND n.payable_type = $payable_type"
            params["payable_type"] = payable_type
        return where, params

    def list_for_user(self, user_id: int, payable_type: Optional[str] = None,
                      limit: int = 50, offset: int = 0) -> List[Payment]:
        where, params = self._user_clause(user_id, payable_type)
        return self._select(where, params, limit=limit, offset=offset)

    def count_for_user(self, user_id: int, payable_type: Optional[str] = None) -> int:
        where, params = self._user_clause(user_id, payable_type)
        return self._count(where, params)

    def update(self, payment: Payment) -> Payment:
        return self._save(payment)

    def delete_for_user(self, user_id: int) -> int:
        return self._delete_where("n.user_id = $user_id", {"user_id": int(user_id)})


class KuzuLinkedAccountRepository(KuzuNodeRepository, LinkedAccountRepository):
    table = "LinkedAccount"
    model = LinkedAccount

    def create(self, account: LinkedAccount) -> LinkedAccount:
        return self._insert(account)

    def list_for_user(self, user_id: int) -> List[LinkedAccount]:
        return self._select("n.user_id = $user_id", {"user_id": int(user_id)}, sort_column="provider", order="ASC")

    def find(self, user_id: int, provider: str) -> Optional[LinkedAccount]:
        return self._first("n.user_id = $user_id AND n.provider = $provider",
                           {"user_id": int(user_id), "provider": provider})

    def delete(self, account_id: int) -> bool:
        return self._delete(account_id)

    def delete_for_user(self, user_id: int) -> int:
        return self._delete_where("n.user_id = $user_id", {"user_id": int(user_id)})
