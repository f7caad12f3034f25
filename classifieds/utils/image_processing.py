from __future__ import annotations

from io import BytesIO
from pathlib import Path
import uuid

from PIL import Image, ImageOps
from flask import current_app


AVATAR_DIR = 'avatars'


def get_public_storage_dir() -> Path:
    """Return ``<DOCUMENT_ROOT>/storage/app/public``, the directory served under /storage."""
    root = current_app.config.get('DOCUMENT_ROOT') or Path(current_app.root_path).parent
    return Path(root) / 'storage' / 'app' / 'public'


def get_avatars_dir() -> Path:
    avatars_dir = get_public_storage_dir() / AVATAR_DIR
    avatars_dir.mkdir(parents=True, exist_ok=True)
    return avatars_dir


def _choose_format(original_mode: str) -> tuple[str, str]:
    """Keep PNG when the source has alpha, JPEG otherwise."""
    mode = (original_mode or '').upper()
    if 'A' in mode or mode == 'P':
        return 'PNG', '.png'
    return 'JPEG', '.jpg'


def _prepare_image(img: Image.Image, out_fmt: str) -> Image.Image:
    """Ensure the image is in a correct mode for saving in out_fmt (handle alpha on JPEG)."""
    if out_fmt == 'JPEG':
        if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
            bg = Image.new('RGB', img.size, (255, 255, 255))
            rgba = img.convert('RGBA')
            bg.paste(rgba, mask=rgba.split()[-1])
            return bg
        if img.mode != 'RGB':
            return img.convert('RGB')
    elif img.mode not in ('RGBA', 'LA', 'RGB', 'L'):
        return img.convert('RGBA')
    return img


def process_avatar_bytes_and_store(image_bytes: bytes, max_size: int | None = None) -> str:
    """Square-crop an avatar, bound it to ``max_size`` pixels and store it.

    Returns the path relative to public storage, e.g. "avatars/<uuid>.jpg".
    Raises ValueError when the bytes are not a readable image.
    """
    size = int(max_size or current_app.config.get('AVATAR_MAX_SIZE', 400))
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            out_fmt, out_ext = _choose_format(img.mode)
            side = min(size, img.width, img.height)
            fitted = ImageOps.fit(img, (side, side), Image.Resampling.LANCZOS)
            prepared = _prepare_image(fitted, out_fmt)
    # Truncated or corrupt data fails while decoding with OSError; unsupported modes with ValueError.
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ValueError('The uploaded file is not a valid image.') from e

    filename = f"{uuid.uuid4()}{out_ext}"
    save_kwargs = dict(quality=90, optimize=True) if out_fmt == 'JPEG' else dict(optimize=True)
    prepared.save(get_avatars_dir() / filename, format=out_fmt, **save_kwargs)

    current_app.logger.info(f"[AVATAR] Stored {AVATAR_DIR}/{filename} ({side}x{side})")
    return f"{AVATAR_DIR}/{filename}"


def process_avatar_from_filestorage(file_storage) -> str:
    """Process an uploaded FileStorage and store, returning the relative path."""
    return process_avatar_bytes_and_store(file_storage.read())


def delete_stored_file(relative_path: str | None) -> bool:
    """Remove a file previously stored under public storage; ignores paths outside it."""
    if not relative_path:
        return False
    base = get_public_storage_dir().resolve()
    target = (base / relative_path).resolve()
    if base not in target.parents or not target.is_file():
        return False
    target.unlink()
    return True
