"""Core data types for the fixtureboard application."""

from typing import Any, Dict, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str
    createdAt: Any


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    createdBy: str
    updatedAt: Any


class APIResponse(TypedDict):
    """Generic API response structure."""

    status: str
    message: str
    data: Optional[Dict[str, Any]]  # noqa: UP006
