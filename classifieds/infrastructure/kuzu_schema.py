"""
Kuzu node table definitions for the account area.

Every table has an INT64 ``id`` primary key allocated through the
``IdCounter`` table, so ids stay digits-only and never start at zero.
Relationships are stored as id columns rather than REL tables.
"""

import logging
from typing import Dict, Iterable, Mapping

from .kuzu_manager import KuzuManager

logger = logging.getLogger(__name__)


NODE_TABLES: Dict[str, Dict[str, str]] = {
    "User": {
        "id": "INT64",
        "name": "STRING",
        "username": "STRING",
        "email": "STRING",
        "phone": "STRING",
        "phone_hidden": "BOOLEAN",
        "gender_id": "INT64",
        "about": "STRING",
        "photo_path": "STRING",
        "password_hash": "STRING",
        "is_admin": "BOOLEAN",
        "is_active": "BOOLEAN",
        "is_banned": "BOOLEAN",
        "two_factor_enabled": "BOOLEAN",
        "timezone": "STRING",
        "language_code": "STRING",
        "theme": "STRING",
        "accept_marketing_offers": "BOOLEAN",
        "last_login_at": "TIMESTAMP",
        "created_at": "TIMESTAMP",
        "updated_at": "TIMESTAMP",
    },
    "Post": {
        "id": "INT64",
        "user_id": "INT64",
        "title": "STRING",
        "description": "STRING",
        "price": "DOUBLE",
        "category": "STRING",
        "city": "STRING",
        "visits": "INT64",
        "reviewed_at": "TIMESTAMP",
        "archived_at": "TIMESTAMP",
        "created_at": "TIMESTAMP",
        "updated_at": "TIMESTAMP",
    },
    "SavedPost": {
        "id": "INT64",
        "user_id": "INT64",
        "post_id": "INT64",
        "created_at": "TIMESTAMP",
    },
    "SavedSearch": {
        "id": "INT64",
        "user_id": "INT64",
        "keyword": "STRING",
        "query_string": "STRING",
        "result_count": "INT64",
        "created_at": "TIMESTAMP",
    },
    "Thread": {
        "id": "INT64",
        "post_id": "INT64",
        "subject": "STRING",
        "created_at": "TIMESTAMP",
        "updated_at": "TIMESTAMP",
    },
    "ThreadMessage": {
        "id": "INT64",
        "thread_id": "INT64",
        "user_id": "INT64",
        "sender_name": "STRING",
        "sender_email": "STRING",
        "sender_phone": "STRING",
        "body": "STRING",
        "created_at": "TIMESTAMP",
    },
    "ThreadParticipant": {
        "id": "INT64",
        "thread_id": "INT64",
        "user_id": "INT64",
        "last_read_at": "TIMESTAMP",
        "is_important": "BOOLEAN",
        "deleted_at": "TIMESTAMP",
    },
    "Package": {
        "id": "INT64",
        "name": "STRING",
        "short_name": "STRING",
        "price": "DOUBLE",
        "currency_code": "STRING",
        "interval_days": "INT64",
        "description": "STRING",
        "is_active": "BOOLEAN",
    },
    "Payment": {
        "id": "INT64",
        "user_id": "INT64",
        "payable_type": "STRING",
        "payable_id": "INT64",
        "package_id": "INT64",
        "amount": "DOUBLE",
        "currency_code": "STRING",
        "payment_method": "STRING",
        "transaction_ref": "STRING",
        "status": "STRING",
        "period_start": "TIMESTAMP",
        "period_end": "TIMESTAMP",
        "created_at": "TIMESTAMP",
        "updated_at": "TIMESTAMP",
    },
    "LinkedAccount": {
        "id": "INT64",
        "user_id": "INT64",
        "provider": "STRING",
        "provider_user_id": "STRING",
        "created_at": "TIMESTAMP",
    },
}

COUNTER_TABLE = (
    "CREATE NODE TABLE IF NOT EXISTS IdCounter("
    "counter_name STRING, current_value INT64, PRIMARY KEY(counter_name))"
)


def _node_table_ddl(table: str, columns: Mapping[str, str]) -> str:
    column_sql = ", ".join(f"{name} {kind}" for name, kind in columns.items())
    return f"CREATE NODE TABLE IF NOT EXISTS {table}({column_sql}, PRIMARY KEY(id))"


def ensure_schema(manager: KuzuManager) -> None:
    """Create any missing node tables (idempotent)."""
    manager.execute(COUNTER_TABLE, operation="schema:IdCounter")
    for table, columns in NODE_TABLES.items():
        manager.execute(_node_table_ddl(table, columns), operation=f"schema:{table}")
    logger.info(f"Kuzu schema ensured ({len(NODE_TABLES)} node tables)")


def seed_packages(manager: KuzuManager, packages: Iterable[Mapping]) -> int:
    """Insert the default subscription packages when none exist yet."""
    from ..domain.models import Package
    from .kuzu_repositories import KuzuPackageRepository

    repo = KuzuPackageRepository(manager)
    if repo.count() > 0:
        return 0
    created = 0
    for spec in packages:
        repo.create(Package(**dict(spec)))
        created += 1
    logger.info(f"Seeded {created} subscription packages")
    return created
