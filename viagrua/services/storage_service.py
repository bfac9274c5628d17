"""
Photo storage for traslados.

Blobs live on disk under <PHOTO_STORAGE_DIR>/<traslado_id>/ and are served as
static files under PHOTO_PUBLIC_PATH.
"""
import logging
import os
import shutil
import time
from typing import Optional

from viagrua.core import config

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
MAX_PHOTO_BYTES = 10 * 1024 * 1024


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def _extension(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return ext if ext in ALLOWED_EXTENSIONS else ".jpg"


def save_photo(
    traslado_id: int,
    tipo: str,
    content: bytes,
    filename: Optional[str] = None,
    base_dir: Optional[str] = None,
) -> str:
    """
    Store a traslado photo and return its public URL.

    Raises:
        ValueError: empty or oversized file
    """
    if not content:
        raise ValueError("Archivo vacío")
    if len(content) > MAX_PHOTO_BYTES:
        raise ValueError("La foto supera el tamaño máximo de 10MB")

    base_dir = base_dir or config.PHOTO_STORAGE_DIR
    folder = os.path.join(base_dir, str(traslado_id))
    ensure_dir(folder)

    stored_name = f"{tipo}_{int(time.time() * 1000)}{_extension(filename)}"
    with open(os.path.join(folder, stored_name), "wb") as f:
        f.write(content)

    url = f"{config.API_PUBLIC_URL}{config.PHOTO_PUBLIC_PATH}/{traslado_id}/{stored_name}"
    logger.info(f"Saved photo traslado={traslado_id} tipo={tipo} name={stored_name} size={len(content)}")
    return url


def remove_traslado_photos(traslado_id: int, base_dir: Optional[str] = None) -> bool:
    """Best-effort removal of a traslado's photo folder. Returns True if something was removed."""
    base_dir = base_dir or config.PHOTO_STORAGE_DIR
    folder = os.path.join(base_dir, str(traslado_id))
    if not os.path.isdir(folder):
        return False
    try:
        shutil.rmtree(folder)
    except OSError as e:
        logger.warning(f"Could not remove photos for traslado={traslado_id}: {e}")
        return False
    logger.info(f"Removed photos for traslado={traslado_id}")
    return True
