"""
Alumni directory, feedback board and the college-info singleton.
"""
import logging
from datetime import datetime
from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from auth import Identity
from database import ALUMNI, COLLEGE_INFO, FEEDBACK, RecordStore, serialize, to_object_id
from errors import ConflictError, NotFoundError, ValidationError
from notifications import NotificationEmitter
from policy import enforce, evaluate
from schemas import Alumni, CollegeInfo, Feedback
from validation import build_model, clean_patch, validate_payload

logger = logging.getLogger("alumni.records")

ALUMNI_PROTECTED = ("isVerified", "createdAt", "updatedAt")

# legacy field name -> stored field name
COLLEGE_INFO_ALIASES = {
    "location": "address",
    "established": "foundedYear",
    "social_links": "socialLinks",
    "total_alumni": "totalAlumni",
    "total_funds_raised": "totalFundsRaised",
}


class AlumniDirectory:
    def __init__(self, store: RecordStore, emitter: NotificationEmitter):
        self.store = store
        self.emitter = emitter

    def _get_or_404(self, alumni_id: str) -> dict:
        if to_object_id(alumni_id) is None:
            raise ValidationError("Invalid alumni ID format")
        alumni = self.store.get_document(ALUMNI, alumni_id)
        if alumni is None:
            raise NotFoundError("Alumni not found")
        return alumni

    def _ensure_email_free(self, email: str, exclude_id=None, status_code: Optional[int] = None) -> None:
        query = {"email": email.strip().lower()}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if self.store.exists(ALUMNI, query):
            raise ConflictError("Alumni with this email already exists", status_code)

    def _insert(self, model: Alumni, status_code: Optional[int] = None) -> dict:
        try:
            return self.store.create_document(ALUMNI, model)
        except DuplicateKeyError:
            raise ConflictError("Alumni with this email already exists", status_code)

    def list(self) -> List[dict]:
        return [serialize(a) for a in self.store.get_documents(ALUMNI, {}, sort=[("createdAt", -1)])]

    def get(self, alumni_id: str) -> dict:
        return serialize(self._get_or_404(alumni_id))

    def by_batch(self, batch: str) -> List[dict]:
        try:
            batch_number = int(batch)
        except (TypeError, ValueError):
            raise ValidationError("Batch must be a valid number")
        items = self.store.get_documents(ALUMNI, {"batch": batch_number}, sort=[("name", 1)])
        return [serialize(a) for a in items]

    def create(self, payload: dict, identity: Identity) -> dict:
        validate_payload("alumni", payload)
        self._ensure_email_free(payload["email"])
        data = clean_patch(payload, ALUMNI_PROTECTED)
        data["isVerified"] = identity.is_admin
        alumni = self._insert(build_model(Alumni, data))

        logger.info("Alumni %s added by %s", alumni["email"], identity.email)
        self.emitter.emit("New Alumni Added", f"New alumni {alumni['name']} added", "info", "admin")
        return serialize(alumni)

    def update(self, alumni_id: str, payload: dict, identity: Identity) -> dict:
        existing = self._get_or_404(alumni_id)
        enforce("alumni.update", identity, existing)

        patch = {k: v for k, v in clean_patch(payload, ALUMNI_PROTECTED).items() if k in Alumni.model_fields}
        if not patch:
            return serialize(existing)
        if "email" in patch:
            validate_payload("alumni", {**existing, **patch})
            self._ensure_email_free(patch["email"], exclude_id=existing["_id"])

        merged = {k: existing[k] for k in Alumni.model_fields if k in existing}
        merged.update(patch)
        values = build_model(Alumni, merged).model_dump()
        try:
            updated = self.store.update_document(ALUMNI, existing["_id"], {k: values[k] for k in patch})
        except DuplicateKeyError:
            raise ConflictError("Alumni with this email already exists")
        if updated is None:
            raise NotFoundError("Alumni not found")
        return serialize(updated)

    def delete(self, alumni_id: str) -> dict:
        if to_object_id(alumni_id) is None:
            raise ValidationError("Invalid alumni ID format")
        deleted = self.store.delete_document(ALUMNI, alumni_id)
        if deleted is None:
            raise NotFoundError("Alumni not found")
        self.emitter.emit("Alumni Deleted", f"Alumni {deleted.get('name')} has been deleted", "info", "admin")
        return {"message": "Alumni deleted successfully"}

    def verify(self, alumni_id: str) -> dict:
        if to_object_id(alumni_id) is None:
            raise ValidationError("Invalid alumni ID format")
        alumni = self.store.update_document(ALUMNI, alumni_id, {"isVerified": True})
        if alumni is None:
            raise NotFoundError("Alumni not found")
        self.emitter.emit("Alumni Verified", f"Alumni {alumni.get('name')} has been verified", "success", "all")
        return serialize(alumni)

    def promote_scraped_profile(self, profile: dict) -> dict:
        """Turn a scraped profile into an unverified alumni record."""
        validate_payload("scraped_profile", profile)
        self._ensure_email_free(profile["email"], status_code=409)

        data = {
            "name": profile["name"],
            "email": profile["email"],
            "phone": profile.get("phone") or None,
            "batch": profile.get("batch") or datetime.now().year - 4,
            "degree": profile.get("degree") or "Graduate",
            "occupation": profile.get("designation") or None,
            "company": profile.get("company") or None,
            "location": profile.get("location") or None,
            "bio": profile.get("bio") or None,
            "profilePicture": profile.get("image") or None,
            "socialLinks": {
                "linkedin": profile.get("linkedInProfile") or None,
                "naukri": profile.get("naukriProfile") or None,
            },
            "isVerified": False,
        }
        alumni = self._insert(build_model(Alumni, data), status_code=409)
        source = profile["source"]

        logger.info("Added alumni %s from %s", alumni["email"], source)
        self.emitter.emit(
            "New Alumni Added via Scraping",
            f"New alumni {alumni['name']} added from {source} and needs verification",
            "info",
            "admin",
            link=f"/admin/alumni/{alumni['_id']}",
        )
        return {
            "success": True,
            "alumni": serialize(alumni),
            "message": f"Successfully added {alumni['name']} from {source} as a new alumni.",
        }


class FeedbackBoard:
    def __init__(self, store: RecordStore, emitter: NotificationEmitter):
        self.store = store
        self.emitter = emitter

    @staticmethod
    def _can_moderate(identity: Optional[Identity]) -> bool:
        return evaluate("feedback.moderate", identity).allowed

    def list(self, identity: Optional[Identity]) -> List[dict]:
        query = {} if self._can_moderate(identity) else {"isApproved": True}
        return [serialize(f) for f in self.store.get_documents(FEEDBACK, query, sort=[("createdAt", -1)])]

    def get(self, feedback_id: str, identity: Optional[Identity]) -> dict:
        if to_object_id(feedback_id) is None:
            raise ValidationError("Invalid feedback ID format")
        feedback = self.store.get_document(FEEDBACK, feedback_id)
        if feedback is None:
            raise NotFoundError("Feedback not found")
        if not feedback.get("isApproved"):
            enforce("feedback.moderate", identity)
        return serialize(feedback)

    def create(self, payload: dict) -> dict:
        validate_payload("feedback", payload)
        data = {
            "alumniName": payload["alumniName"],
            "text": payload.get("text") or None,
            "videoUrl": payload.get("videoUrl") or None,
            "rating": payload.get("rating"),
            "isApproved": False,
        }
        alumni_id = payload.get("alumniId")
        if alumni_id and self.store.get_document(ALUMNI, alumni_id) is not None:
            data["alumniId"] = str(alumni_id)

        feedback = self.store.create_document(FEEDBACK, build_model(Feedback, data))
        self.emitter.emit("New Feedback", f"New feedback received from {feedback['alumniName']}", "info", "admin")
        return serialize(feedback)

    def approve(self, feedback_id: str) -> dict:
        if to_object_id(feedback_id) is None:
            raise ValidationError("Invalid feedback ID format")
        feedback = self.store.update_document(FEEDBACK, feedback_id, {"isApproved": True})
        if feedback is None:
            raise NotFoundError("Feedback not found")
        self.emitter.emit(
            "Feedback Approved",
            f"Feedback from {feedback.get('alumniName')} has been approved",
            "success",
            "all",
        )
        return serialize(feedback)

    def delete(self, feedback_id: str) -> dict:
        if to_object_id(feedback_id) is None:
            raise ValidationError("Invalid feedback ID format")
        if self.store.delete_document(FEEDBACK, feedback_id) is None:
            raise NotFoundError("Feedback not found")
        return {"message": "Feedback deleted successfully"}


def normalize_college_info(payload: dict) -> dict:
    data = dict(payload)
    for legacy, field in COLLEGE_INFO_ALIASES.items():
        if legacy in data:
            value = data.pop(legacy)
            if value is not None and data.get(field) in (None, ""):
                data[field] = value
    data.pop("updated_at", None)
    return data


def get_college_info(store: RecordStore) -> dict:
    info = store.get_singleton(COLLEGE_INFO)
    if info is None:
        raise NotFoundError("College information not found")
    return serialize(info)


def upsert_college_info(store: RecordStore, payload: dict) -> dict:
    """Update the single college-info record, creating it on first write."""
    data = normalize_college_info(payload)
    validate_payload("college_info", data)
    model = build_model(CollegeInfo, {k: v for k, v in data.items() if k in CollegeInfo.model_fields})
    info = store.upsert_singleton(
        COLLEGE_INFO, model.model_dump(exclude_unset=True), defaults=model.model_dump()
    )
    logger.info("College info updated")
    return serialize(info)
