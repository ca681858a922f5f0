"""
Scoped key-value preferences (recipient email) backed by SQLAlchemy.
"""
import logging
from typing import Any, Dict, Optional

from storage.models import Preference

logger = logging.getLogger(__name__)

RECIPIENT_EMAIL_KEY = "tesla_alert_email"
INVALID_EMAIL_ERROR = "Please enter a valid email address"


class PreferenceStore:
    def __init__(self, session_factory, scope: str = "default"):
        self.session_factory = session_factory
        self.scope = scope

    def get(self, key: str) -> Optional[str]:
        session = self.session_factory()
        try:
            row = session.query(Preference).filter_by(scope=self.scope, key=key).first()
            return row.value if row else None
        finally:
            session.close()

    def set(self, key: str, value: str):
        session = self.session_factory()
        try:
            row = session.query(Preference).filter_by(scope=self.scope, key=key).first()
            if row is None:
                row = Preference(scope=self.scope, key=key)
                session.add(row)
            row.value = value
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class RecipientEmailPreference:
    """Validates and persists the alert recipient address under a fixed key."""

    def __init__(self, store: PreferenceStore, key: str = RECIPIENT_EMAIL_KEY):
        self.store = store
        self.key = key

    @staticmethod
    def is_valid(email: Optional[str]) -> bool:
        return bool(email) and "@" in email

    def save(self, email: Optional[str]) -> Dict[str, Any]:
        if not self.is_valid(email):
            return {"success": False, "error": INVALID_EMAIL_ERROR}
        try:
            self.store.set(self.key, email)
        except Exception as e:
            logger.error(f"[PREFS] Failed to save recipient email: {e}")
            return {"success": False, "error": "Failed to save settings"}
        logger.info("[PREFS] Recipient email updated")
        return {"success": True, "email": email}

    def load(self) -> Optional[str]:
        try:
            return self.store.get(self.key) or None
        except Exception as e:
            logger.error(f"[PREFS] Failed to load recipient email: {e}")
            return None
