from .classifier import PhotoKind, classify_photo, is_candidate, to_direct_url
from .fetcher import HttpPhotoFetcher, PhotoFetcher
from .resolver import resolve_photo

__all__ = [
    "PhotoKind",
    "classify_photo",
    "is_candidate",
    "to_direct_url",
    "PhotoFetcher",
    "HttpPhotoFetcher",
    "resolve_photo",
]
