from __future__ import annotations

from dataclasses import dataclass

"""Photo models shared by the resolver and the pipeline."""

__all__ = [
    "FetchResponse",
    "PhotoAsset",
]


@dataclass(frozen=True)
class FetchResponse:
    """Result of one fetch through the injected fetch capability."""
    status: int
    content_type: str
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass(frozen=True)
class PhotoAsset:
    """Downloaded photo keyed by the owning record's orphan id."""
    orphan_id: str
    content: bytes
    mime_type: str
    filename: str
