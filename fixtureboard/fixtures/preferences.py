"""Per-tournament memory of the chosen fixture format."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from fixtureboard.core.constants import FIXTURE_STYLES, PREFERENCES_COLLECTION
from fixtureboard.errors import ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client


class FormatPreferenceStore:
    """Keyed scalar store: tournament id -> preferred fixture style."""

    def __init__(self, db: Client | None = None) -> None:
        self.db = db if db is not None else firestore.client()

    def _ref(self, tournament_id: str) -> Any:
        return self.db.collection(PREFERENCES_COLLECTION).document(tournament_id)

    def get(self, tournament_id: str) -> Optional[str]:
        doc = cast("DocumentSnapshot", self._ref(tournament_id).get())
        if not doc.exists:
            return None
        style = (doc.to_dict() or {}).get("fixtureStyle")
        return style if style in FIXTURE_STYLES else None

    def set(self, tournament_id: str, style: str) -> None:
        if style not in FIXTURE_STYLES:
            raise ValidationError(f"Unknown fixture style: {style}.")
        self._ref(tournament_id).set(
            {"fixtureStyle": style, "updatedAt": firestore.SERVER_TIMESTAMP}
        )

    def clear(self, tournament_id: str) -> None:
        ref = self._ref(tournament_id)
        if cast("DocumentSnapshot", ref.get()).exists:
            ref.delete()
