"""
Messaging service

Threads are started by contacting a post author (signed-in users or guests)
and continued by replies from the account's messages page. Each participant
keeps its own read marker, importance flag and soft-delete timestamp.
"""

import logging
import smtplib
from typing import Iterable, List, Optional

from ..domain.models import (
    Thread, ThreadMessage, ThreadParticipant, User, PostStatus, now_utc
)
from ..infrastructure.kuzu_repositories import (
    KuzuThreadRepository, KuzuPostRepository, KuzuUserRepository
)
from ..mailer import send_mail
from ..utils.pagination import Page
from .errors import AccountError, NotFoundError

logger = logging.getLogger(__name__)

THREAD_FILTERS = ('unread', 'started', 'important')
THREAD_ACTIONS = ('markAsRead', 'markAsUnread', 'markAsImportant', 'markAsNotImportant', 'markAllAsRead')


class MessagingService:
    """Service for message threads between users and post authors."""

    def __init__(self):
        self.thread_repo = KuzuThreadRepository()
        self.post_repo = KuzuPostRepository()
        self.user_repo = KuzuUserRepository()

    # ------------------------------------------------------------------
    # Starting and replying
    # ------------------------------------------------------------------
    def contact_author(self, post_id: int, body: str, sender: Optional[User] = None,
                       name: Optional[str] = None, email: Optional[str] = None,
                       phone: Optional[str] = None) -> Thread:
        """Open a thread with the author of an online post."""
        post = self.post_repo.get_by_id(post_id)
        if post is None or post.status is not PostStatus.ONLINE:
            raise NotFoundError('Post not found.')
        body = (body or '').strip()
        if not body:
            raise AccountError('Please write a message.')

        if sender is not None:
            if sender.id == post.user_id:
                raise AccountError('You cannot send a message about your own post.')
            name, email, phone = sender.name, sender.email, phone or sender.phone
        else:
            name, email = (name or '').strip(), (email or '').strip()
            if not name or not email:
                raise AccountError('Please provide your name and email address.')

        moment = now_utc()
        thread = self.thread_repo.create_thread(Thread(post_id=post.id, subject=post.title,
                                                       created_at=moment, updated_at=moment))
        self.thread_repo.add_message(ThreadMessage(
            thread_id=thread.id, user_id=sender.id if sender else None, sender_name=name,
            sender_email=email, sender_phone=phone or None, body=body, created_at=moment))
        self.thread_repo.add_participant(ThreadParticipant(thread_id=thread.id, user_id=post.user_id))
        if sender is not None:
            self.thread_repo.add_participant(ThreadParticipant(thread_id=thread.id, user_id=sender.id,
                                                               last_read_at=moment))
        logger.info(f"Thread {thread.id} opened on post {post.id} by {email}")

        self._notify_author(post.user_id, thread, name, body)
        return thread

    def _notify_author(self, author_id: int, thread: Thread, sender_name: str, body: str) -> None:
        author = self.user_repo.get_by_id(author_id)
        if author is None or not author.email:
            return
        try:
            send_mail(author.email, f'New message about "{thread.subject}"',
                      f'{sender_name} wrote:\n\n{body}\n')
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Could not notify user {author_id} about thread {thread.id}: {e}")

    def reply(self, user: User, thread_id: int, body: str) -> ThreadMessage:
        thread = self.get_user_thread(user.id, thread_id)
        body = (body or '').strip()
        if not body:
            raise AccountError('Please write a message.')
        moment = now_utc()
        message = self.thread_repo.add_message(ThreadMessage(
            thread_id=thread.id, user_id=user.id, sender_name=user.name, sender_email=user.email,
            sender_phone=user.phone, body=body, created_at=moment))
        thread.updated_at = moment
        self.thread_repo.update_thread(thread)

        for participant in self.thread_repo.list_participants(thread.id):
            if participant.user_id == user.id:
                participant.last_read_at = moment
            elif participant.deleted_at is not None:
                # A reply brings the thread back for whoever deleted it
                participant.deleted_at = None
            else:
                continue
            self.thread_repo.update_participant(participant)
        return message

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    def _load(self, participant: ThreadParticipant, with_messages: bool = False) -> Optional[Thread]:
        thread = self.thread_repo.get_thread(participant.thread_id)
        if thread is None:
            return None
        thread.participant = participant
        if with_messages:
            thread.messages = self.thread_repo.list_messages(thread.id)
        return thread

    def _threads_for(self, user_id: int, with_messages: bool = False) -> List[Thread]:
        threads = []
        for participant in self.thread_repo.list_participations(user_id):
            thread = self._load(participant, with_messages)
            if thread is not None:
                threads.append(thread)
        threads.sort(key=lambda t: (t.updated_at, t.id), reverse=True)
        return threads

    def list_threads(self, user_id: int, thread_filter: Optional[str] = None,
                     page: int = 1, per_page: int = 10) -> Page:
        threads = self._threads_for(user_id, with_messages=True)
        if thread_filter == 'unread':
            threads = [t for t in threads if t.is_unread]
        elif thread_filter == 'started':
            threads = [t for t in threads if t.messages and t.messages[0].user_id == user_id]
        elif thread_filter == 'important':
            threads = [t for t in threads if t.participant and t.participant.is_important]
        result = Page(items=[], page=page, per_page=per_page, total=len(threads))
        result.items = threads[result.offset:result.offset + per_page]
        return result

    def count_unread(self, user_id: int) -> int:
        return sum(1 for thread in self._threads_for(user_id) if thread.is_unread)

    def get_user_thread(self, user_id: int, thread_id: int, with_messages: bool = False) -> Thread:
        participant = self.thread_repo.get_participant(thread_id, user_id)
        if participant is None or participant.deleted_at is not None:
            raise NotFoundError('Thread not found.')
        thread = self._load(participant, with_messages)
        if thread is None:
            raise NotFoundError('Thread not found.')
        return thread

    def open_thread(self, user_id: int, thread_id: int) -> Thread:
        """Load a thread with its messages and mark it read."""
        thread = self.get_user_thread(user_id, thread_id, with_messages=True)
        participant = thread.participant
        if participant is not None and thread.is_unread:
            participant.last_read_at = now_utc()
            self.thread_repo.update_participant(participant)
        return thread

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def apply_action(self, user_id: int, action: str, thread_ids: Iterable[int] = ()) -> int:
        """Apply one of THREAD_ACTIONS; returns how many threads changed."""
        if action not in THREAD_ACTIONS:
            raise AccountError(f'Unknown action: {action}')
        if action == 'markAllAsRead':
            participants = self.thread_repo.list_participations(user_id)
        else:
            participants = []
            for thread_id in thread_ids:
                participant = self.thread_repo.get_participant(thread_id, user_id)
                if participant is not None and participant.deleted_at is None:
                    participants.append(participant)

        changed = 0
        for participant in participants:
            if action in ('markAsRead', 'markAllAsRead'):
                participant.last_read_at = now_utc()
            elif action == 'markAsUnread':
                participant.last_read_at = None
            elif action == 'markAsImportant':
                participant.is_important = True
            elif action == 'markAsNotImportant':
                participant.is_important = False
            self.thread_repo.update_participant(participant)
            changed += 1
        logger.info(f"User {user_id} applied {action} to {changed} thread(s)")
        return changed

    def delete_threads(self, user_id: int, thread_ids: Iterable[int]) -> int:
        """Hide threads for this participant only."""
        deleted = 0
        for thread_id in thread_ids:
            participant = self.thread_repo.get_participant(thread_id, user_id)
            if participant is None or participant.deleted_at is not None:
                continue
            participant.deleted_at = now_utc()
            self.thread_repo.update_participant(participant)
            deleted += 1
        return deleted
