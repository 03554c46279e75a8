from __future__ import annotations

import re
from enum import Enum
from typing import Any

"""Photo cell classification and cloud-storage URL rewriting.

classify_photo() decides what a photo cell holds before anything is fetched:
placeholder text ("N/A", "None", ...) is recognised up front so that it never
reaches the network.
"""

__all__ = [
    "PhotoKind",
    "SENTINEL_VALUES",
    "IMAGE_EXTENSIONS",
    "classify_photo",
    "is_candidate",
    "is_drive_url",
    "extract_drive_file_id",
    "to_direct_url",
    "drive_thumbnail_url",
]

SENTINEL_VALUES = frozenset(
    {"accident", "none", "n/a", "na", "null", "undefined", "no photo", "no image"}
)
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg")
_IMAGE_KEYWORDS = ("image", "img", "photo", "pic", "upload", "media")

_DRIVE_FILE_ID_RE = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
DRIVE_THUMBNAIL_SIZE = "w2048"
PHOTOS_SIZE_SUFFIX = "=s2048"


class PhotoKind(Enum):
    EMPTY = "empty"
    SENTINEL = "sentinel"  # 写真なしを表すプレースホルダ
    CANDIDATE = "candidate"
    INVALID = "invalid"


def classify_photo(value: Any) -> PhotoKind:
    if value is None:
        return PhotoKind.EMPTY
    text = str(value).strip()
    if not text:
        return PhotoKind.EMPTY
    lower = text.lower()
    if lower in SENTINEL_VALUES:
        return PhotoKind.SENTINEL
    if not lower.startswith(("http://", "https://")):
        return PhotoKind.INVALID

    if "drive.google.com/file/d/" in lower:
        return PhotoKind.CANDIDATE
    if "photos.google.com" in lower or "googleusercontent.com" in lower:
        return PhotoKind.CANDIDATE
    if "dropbox.com" in lower:
        return PhotoKind.CANDIDATE
    if lower.endswith(IMAGE_EXTENSIONS):
        return PhotoKind.CANDIDATE
    if any(term in lower for term in _IMAGE_KEYWORDS):
        return PhotoKind.CANDIDATE
    return PhotoKind.INVALID


def is_candidate(value: Any) -> bool:
    return classify_photo(value) is PhotoKind.CANDIDATE


def is_drive_url(url: str) -> bool:
    return "drive.google.com" in url.lower()


def extract_drive_file_id(url: str) -> str | None:
    m = _DRIVE_FILE_ID_RE.search(url)
    return m.group(1) if m else None


def drive_thumbnail_url(file_id: str) -> str:
    return f"https://drive.google.com/thumbnail?id={file_id}&sz={DRIVE_THUMBNAIL_SIZE}"


def to_direct_url(url: str) -> str:
    """Rewrite share links of known storage services into direct-fetch form.

    - Google Drive ``/file/d/<id>`` -> thumbnail endpoint, large size
    - Google Photos / googleusercontent -> ``=s2048`` appended when no size given
    - Dropbox ``?dl=0`` -> ``?dl=1``
    """
    if is_drive_url(url):
        file_id = extract_drive_file_id(url)
        if file_id:
            return drive_thumbnail_url(file_id)
        return url

    if "photos.google.com" in url or "googleusercontent.com" in url:
        if "=s" not in url:
            return url + PHOTOS_SIZE_SUFFIX
        return url

    if "dropbox.com" in url and "?dl=0" in url:
        return url.replace("?dl=0", "?dl=1")

    return url
