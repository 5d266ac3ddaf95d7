"""
Notification emitter.

``emit`` is fire-and-forget: a failed write is logged and swallowed so the
operation that triggered it is never affected.
"""
import logging
from typing import List, Optional

from auth import Identity
from database import NOTIFICATION, RecordStore, serialize
from errors import NotFoundError
from policy import enforce
from schemas import Notification

logger = logging.getLogger("alumni.notifications")


def audience_filter(identity: Identity) -> dict:
    if identity.is_admin:
        return {"audience": {"$in": ["admin", "all"]}}
    return {"audience": "all"}


class NotificationEmitter:
    def __init__(self, store: RecordStore):
        self.store = store

    def emit(
        self,
        title: str,
        message: str,
        type: str = "info",
        audience: str = "admin",
        link: Optional[str] = None,
    ) -> Optional[dict]:
        try:
            doc = Notification(title=title, message=message, type=type, audience=audience, link=link)
            created = self.store.create_document(NOTIFICATION, doc)
        except Exception:
            logger.exception("Failed to emit notification %r (%s)", title, audience)
            return None
        logger.debug("Notification %r -> %s", title, audience)
        return created

    def list_for(self, identity: Identity) -> List[dict]:
        items = self.store.get_documents(NOTIFICATION, audience_filter(identity), sort=[("createdAt", -1)])
        return [serialize(n) for n in items]

    def mark_read(self, notification_id: str, identity: Identity) -> dict:
        notification = self.store.get_document(NOTIFICATION, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        if notification.get("audience") == "admin":
            enforce("notification.read_admin", identity)
        updated = self.store.update_document(NOTIFICATION, notification["_id"], {"isRead": True})
        return serialize(updated)

    def mark_all_read(self, identity: Identity) -> dict:
        query = {**audience_filter(identity), "isRead": False}
        count = self.store.update_many(NOTIFICATION, query, {"isRead": True})
        return {"message": "All notifications marked as read", "count": count}
