"""
Public storage symlink.

Uploaded files live in ``<document root>/storage/app/public`` and are
exposed at ``<document root>/public/storage`` through a symlink. This module
(re)creates that link; it never copies or deletes stored files.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

TARGET_PARTS = ('storage', 'app', 'public')
LINK_PARTS = ('public', 'storage')

SUCCESS_MESSAGE = 'Storage linked successfully!'
ALREADY_LINKED_MESSAGE = 'Storage already linked!'
FAILURE_MESSAGE = 'Failed to create symlink!'


class StorageLinkError(OSError):
    """The public storage link could not be created."""


@dataclass(frozen=True)
class StorageLinkResult:
    target: Path
    link: Path
    created: bool = True


def storage_paths(document_root: Union[str, Path]):
    root = Path(document_root)
    return root.joinpath(*TARGET_PARTS), root.joinpath(*LINK_PARTS)


def _points_at(link: Path, target: Path) -> bool:
    destination = Path(os.readlink(link))
    if not destination.is_absolute():
        destination = link.parent / destination
    return os.path.realpath(destination) == os.path.realpath(target)


def link_public_storage(document_root: Union[str, Path, None], force: bool = False) -> StorageLinkResult:
    """
    Create ``public/storage`` -> ``storage/app/public`` under ``document_root``.

    An existing link to the same target is left alone. A link to somewhere
    else is replaced only with ``force``. A real file or directory at the link
    path is never touched.
    """
    if not document_root:
        raise StorageLinkError('Document root is not set.')
    target, link = storage_paths(document_root)

    if not target.is_dir():
        raise StorageLinkError(f'Target directory does not exist: {target}')

    if link.is_symlink():
        if _points_at(link, target):
            logger.info(f"Storage link already in place: {link} -> {target}")
            return StorageLinkResult(target=target, link=link, created=False)
        if not force:
            raise StorageLinkError(f'{link} already links to {os.readlink(link)}; use --force to replace it.')
        link.unlink()
        logger.warning(f"Replaced stale storage link at {link}")
    elif link.exists():
        raise StorageLinkError(f'A file or directory already exists at {link}.')

    link.parent.mkdir(parents=True, exist_ok=True)
    try:
        os.symlink(target, link, target_is_directory=True)
    except OSError as e:
        raise StorageLinkError(f'{FAILURE_MESSAGE} {e}') from e

    logger.info(f"Storage linked: {link} -> {target}")
    return StorageLinkResult(target=target, link=link, created=True)


def render_report(result: StorageLinkResult, html: bool = False) -> str:
    separator = '<br>' if html else '\n'
    headline = SUCCESS_MESSAGE if result.created else ALREADY_LINKED_MESSAGE
    return separator.join([headline, f'Target: {result.target}', f'Link: {result.link}'])


def render_failure(error: Exception, html: bool = False) -> str:
    separator = '<br>' if html else '\n'
    reason = str(error)
    if reason.startswith(FAILURE_MESSAGE):
        reason = reason[len(FAILURE_MESSAGE):].strip()
    return separator.join(part for part in (FAILURE_MESSAGE, reason) if part)
