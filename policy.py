"""
Access policy. Every protected route asks ``enforce(operation, identity, resource)``
instead of checking roles inline.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from auth import Identity
from errors import AuthError, ForbiddenError

PUBLIC = "public"
AUTHENTICATED = "authenticated"
ADMIN = "admin"
OWNER_OR_ADMIN = "owner_or_admin"

OPERATIONS: Dict[str, str] = {
    "alumni.list": PUBLIC,
    "alumni.read": PUBLIC,
    "alumni.create": AUTHENTICATED,
    "alumni.update": OWNER_OR_ADMIN,
    "alumni.delete": ADMIN,
    "alumni.verify": ADMIN,
    "campaign.list": PUBLIC,
    "campaign.read": PUBLIC,
    "campaign.create": ADMIN,
    "campaign.update": ADMIN,
    "campaign.delete": ADMIN,
    "campaign.toggle": ADMIN,
    "donation.create": PUBLIC,
    "donation.list_by_campaign": PUBLIC,
    "donation.list_by_alumni": OWNER_OR_ADMIN,
    "donation.stats": ADMIN,
    "feedback.create": PUBLIC,
    "feedback.approve": ADMIN,
    "feedback.delete": ADMIN,
    "feedback.moderate": ADMIN,
    "notification.list": AUTHENTICATED,
    "notification.read": AUTHENTICATED,
    "notification.read_admin": ADMIN,
    "college_info.read": PUBLIC,
    "college_info.update": ADMIN,
    "scraper.scrape": ADMIN,
    "scraper.promote": ADMIN,
}

# operation -> (identity attribute, resource key) that must match for ownership
OWNERSHIP: Dict[str, Tuple[str, str]] = {
    "alumni.update": ("email", "email"),
    "donation.list_by_alumni": ("id", "alumniId"),
}


@dataclass(frozen=True)
class Permission:
    allowed: bool
    status_code: int = 200
    reason: str = ""


ALLOW = Permission(True)


def _is_owner(operation: str, identity: Identity, resource: Optional[dict]) -> bool:
    if resource is None or operation not in OWNERSHIP:
        return False
    attr, key = OWNERSHIP[operation]
    mine = getattr(identity, attr, None)
    theirs = resource.get(key)
    if mine is None or theirs is None:
        return False
    return str(mine).lower() == str(theirs).lower()


def evaluate(operation: str, identity: Optional[Identity], resource: Optional[dict] = None) -> Permission:
    rule = OPERATIONS.get(operation)
    if rule is None:
        return Permission(False, 403, f"Unknown operation: {operation}")
    if rule == PUBLIC:
        return ALLOW
    if identity is None:
        return Permission(False, 401, "Access denied. Not authenticated")
    if rule == AUTHENTICATED or identity.is_admin:
        return ALLOW
    if rule == OWNER_OR_ADMIN and _is_owner(operation, identity, resource):
        return ALLOW
    return Permission(False, 403, "Access denied. Not authorized")


def enforce(operation: str, identity: Optional[Identity], resource: Optional[dict] = None) -> None:
    permission = evaluate(operation, identity, resource)
    if permission.allowed:
        return
    if permission.status_code == 401:
        raise AuthError(permission.reason)
    raise ForbiddenError(permission.reason)
