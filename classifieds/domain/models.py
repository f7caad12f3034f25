"""
Domain models for the account area.

These models represent the entities an account owns, independent of how the
Kuzu repositories persist them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any, cast

from classifieds.utils.password_policy import (
    get_password_requirements as get_policy_password_requirements,
    resolve_min_password_length,
)


def now_utc() -> datetime:
    """Timezone-aware UTC now for default timestamps."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Coerce a naive datetime (as returned by Kuzu) to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LabeledEnum(Enum):
    """Enum helpers shared by the selectable enumerations."""

    @property
    def label(self) -> str:
        return self.name.replace('_', ' ').title()

    @classmethod
    def find(cls, value: Any) -> Dict[str, Any]:
        """Return id/name/label for a value, or an empty dict when unknown."""
        if value is None or value == '':
            return {}
        try:
            item = cls(value)
        except ValueError:
            return {}
        data = {'id': item.value, 'name': item.name, 'label': item.label}
        title = getattr(item, 'title', None)
        if isinstance(title, str):
            data['title'] = title
        return data

    @classmethod
    def all(cls, order_by: Optional[str] = 'label', reverse: bool = False) -> Dict[Any, Dict[str, Any]]:
        items = [cls.find(item.value) for item in cls]
        if order_by:
            items.sort(key=lambda entry: str(entry.get(order_by, '')).lower(), reverse=reverse)
        return {entry['id']: entry for entry in items}

    @classmethod
    def names(cls) -> List[str]:
        return [item.name for item in cls]

    @classmethod
    def values(cls) -> List[Any]:
        return [item.value for item in cls]

    @classmethod
    def choices(cls) -> List[tuple]:
        return [(item.value, item.label) for item in cls]


class Gender(LabeledEnum):
    MALE = 1
    FEMALE = 2

    @property
    def title(self) -> str:
        return 'Mr' if self is Gender.MALE else 'Mrs'


class Continent(LabeledEnum):
    AFRICA = 'AF'
    ANTARCTICA = 'AN'
    ASIA = 'AS'
    EUROPE = 'EU'
    NORTH_AMERICA = 'NA'
    OCEANIA = 'OC'
    SOUTH_AMERICA = 'SA'


class Theme(LabeledEnum):
    LIGHT = 'light'
    DARK = 'dark'
    SYSTEM = 'system'


class PostStatus(Enum):
    """Where a post sits in the account's listings."""
    ONLINE = "online"
    ARCHIVED = "archived"
    PENDING = "pending"


class PayableType(Enum):
    SUBSCRIPTION = "subscription"
    PROMOTION = "promotion"


class PaymentStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELED = "canceled"


@dataclass
class User:
    """User domain model."""
    id: Optional[int] = None
    name: str = ""
    username: str = ""
    email: str = ""
    phone: Optional[str] = None
    phone_hidden: bool = False
    gender_id: Optional[int] = None
    about: Optional[str] = None
    photo_path: Optional[str] = None
    password_hash: str = ""

    # Security fields
    is_admin: bool = False
    is_active: bool = True
    is_banned: bool = False
    two_factor_enabled: bool = False

    # Preferences
    timezone: str = "UTC"
    language_code: str = "en"
    theme: str = Theme.SYSTEM.value
    accept_marketing_offers: bool = False

    last_login_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    # Flask-Login compatibility
    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return str(self.id) if self.id is not None else ""

    @property
    def gender(self) -> Optional[Gender]:
        if self.gender_id is None:
            return None
        try:
            return Gender(self.gender_id)
        except ValueError:
            return None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def set_password(self, password: str):
        """Set password hash using werkzeug."""
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check password using werkzeug."""
        from werkzeug.security import check_password_hash
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def is_password_strong(password: str) -> bool:
        """
        Check if password meets security requirements:
        - Meets the configured minimum length
        - Contains at least one letter (upper or lower case)
        - Contains at least one number OR special character
        - Not in common password blacklist
        """
        import re

        min_length = cast(int, resolve_min_password_length())
        if len(password) < min_length:
            return False

        if not re.search(r'[A-Za-z]', password):
            return False

        has_number = bool(re.search(r'\d', password))
        has_special = bool(re.search(r'[!@#$%^&*()_+\-=\[\]{};\':"\\|,.<>\/?]', password))
        if not (has_number or has_special):
            return False

        common_passwords = {
            'password', 'password123', 'password1234', 'admin123', 'administrator',
            'qwerty123', 'welcome123', 'letmein123', 'password!', 'admin', 'qwerty',
            '123456', '12345678', 'welcome', 'letmein', 'monkey', 'dragon'
        }
        if password.lower() in common_passwords:
            return False

        return True

    @staticmethod
    def get_password_requirements() -> List[str]:
        """Return a list of password requirements for display to users"""
        return get_policy_password_requirements()


@dataclass
class Post:
    """A classified listing owned by a user."""
    id: Optional[int] = None
    user_id: Optional[int] = None
    title: str = ""
    description: str = ""
    price: Optional[float] = None
    category: Optional[str] = None
    city: Optional[str] = None
    visits: int = 0
    reviewed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    @property
    def status(self) -> PostStatus:
        if self.reviewed_at is None:
            return PostStatus.PENDING
        if self.archived_at is not None:
            return PostStatus.ARCHIVED
        return PostStatus.ONLINE


@dataclass
class SavedPost:
    id: Optional[int] = None
    user_id: Optional[int] = None
    post_id: Optional[int] = None
    created_at: datetime = field(default_factory=now_utc)

    # Populated by the service layer
    post: Optional[Post] = None


@dataclass
class SavedSearch:
    id: Optional[int] = None
    user_id: Optional[int] = None
    keyword: str = ""
    query_string: str = ""
    result_count: int = 0
    created_at: datetime = field(default_factory=now_utc)


@dataclass
class Thread:
    """A conversation between a post author and whoever contacted them."""
    id: Optional[int] = None
    post_id: Optional[int] = None
    subject: str = ""
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    # Populated by the service layer for the viewing participant
    participant: Optional['ThreadParticipant'] = None
    messages: List['ThreadMessage'] = field(default_factory=list)

    @property
    def is_unread(self) -> bool:
        if self.participant is None:
            return False
        return self.participant.is_unread_for(self)

    @property
    def latest_message(self) -> Optional['ThreadMessage']:
        return self.messages[-1] if self.messages else None


@dataclass
class ThreadMessage:
    id: Optional[int] = None
    thread_id: Optional[int] = None
    user_id: Optional[int] = None
    sender_name: str = ""
    sender_email: Optional[str] = None
    sender_phone: Optional[str] = None
    body: str = ""
    created_at: datetime = field(default_factory=now_utc)


@dataclass
class ThreadParticipant:
    id: Optional[int] = None
    thread_id: Optional[int] = None
    user_id: Optional[int] = None
    last_read_at: Optional[datetime] = None
    is_important: bool = False
    deleted_at: Optional[datetime] = None

    def is_unread_for(self, thread: Thread) -> bool:
        if self.last_read_at is None:
            return True
        updated_at = as_utc(thread.updated_at)
        last_read_at = as_utc(self.last_read_at)
        return bool(updated_at and last_read_at and updated_at > last_read_at)


@dataclass
class Package:
    """Subscription package offered on the subscription page."""
    id: Optional[int] = None
    name: str = ""
    short_name: str = ""
    price: float = 0.0
    currency_code: str = "USD"
    interval_days: int = 30
    description: Optional[str] = None
    is_active: bool = True

    @property
    def is_free(self) -> bool:
        return self.price <= 0


@dataclass
class Payment:
    id: Optional[int] = None
    user_id: Optional[int] = None
    payable_type: str = PayableType.SUBSCRIPTION.value
    payable_id: Optional[int] = None
    package_id: Optional[int] = None
    amount: float = 0.0
    currency_code: str = "USD"
    payment_method: str = "offline"
    transaction_ref: Optional[str] = None
    status: str = PaymentStatus.PENDING.value
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    created_at: datetime = field(default_factory=now_utc)
    updated_at: datetime = field(default_factory=now_utc)

    # Populated by the service layer
    package: Optional[Package] = None

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING.value

    def is_active_at(self, moment: datetime) -> bool:
        if self.status != PaymentStatus.CONFIRMED.value:
            return False
        start, end = as_utc(self.period_start), as_utc(self.period_end)
        if start is None or end is None:
            return False
        return start <= moment < end


@dataclass
class LinkedAccount:
    """A social login provider connected to a user."""
    id: Optional[int] = None
    user_id: Optional[int] = None
    provider: str = ""
    provider_user_id: str = ""
    created_at: datetime = field(default_factory=now_utc)
