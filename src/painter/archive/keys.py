"""Object key layout for archived paintings.

    images/{YYYY}/{MM}/{DD}/{ID}.webp   image
    images/{YYYY}/{MM}/{DD}/{ID}.json   metadata, always written after the image
"""

import re
from datetime import date, datetime

IMAGES_PREFIX = "images/"
IMAGE_EXTENSION = ".webp"
METADATA_EXTENSION = ".json"

FILENAME_PATTERN = re.compile(r"^DOOM_\d{12}_[a-z0-9]{8}_[a-z0-9]{12}\.webp$")


def date_prefix(day: date) -> str:
    return f"{IMAGES_PREFIX}{day.year:04d}/{day.month:02d}/{day.day:02d}/"


def build_painting_key(minute_bucket: str, filename: str) -> str:
    """Key for filename stored under the day of minute_bucket."""
    day = datetime.strptime(minute_bucket, "%Y-%m-%dT%H:%M").date()
    return f"{date_prefix(day)}{filename}"


def metadata_key(image_key: str) -> str:
    if image_key.endswith(IMAGE_EXTENSION):
        return image_key[: -len(IMAGE_EXTENSION)] + METADATA_EXTENSION
    return image_key + METADATA_EXTENSION


def painting_id(filename: str) -> str:
    """Painting id is the filename without its extension."""
    return filename[: -len(IMAGE_EXTENSION)] if filename.endswith(IMAGE_EXTENSION) else filename


def is_valid_painting_filename(filename: str) -> bool:
    return FILENAME_PATTERN.match(filename) is not None


def is_painting_key(key: str) -> bool:
    return key.startswith(IMAGES_PREFIX) and is_valid_painting_filename(key.rsplit("/", 1)[-1])


def public_url(key: str, public_base_url: str = "") -> str:
    """URL a client can fetch key from; the API path when no CDN base is set."""
    if public_base_url:
        return f"{public_base_url.rstrip('/')}/{key}"
    return f"/api/r2/{key}"
