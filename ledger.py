"""
Campaign ledger: campaigns, donations and the ``raised`` total that ties them.

``raised`` is only ever changed by ``record_donation``, through a single atomic
conditional ``$inc`` on the campaign document.
"""
import logging
import math
import uuid
from datetime import datetime
from typing import List

from pymongo.errors import DuplicateKeyError

from auth import Identity
from config import GOAL_REACHED_NOTIFY_ONCE
from database import CAMPAIGN, DONATION, RecordStore, naive_utc, serialize, to_object_id, utcnow
from errors import ConflictError, InactiveCampaignError, NotFoundError, ValidationError
from notifications import NotificationEmitter
from schemas import Campaign, Donation
from validation import build_model, clean_patch, optional_str, validate_amount, validate_payload

logger = logging.getLogger("alumni.ledger")

CAMPAIGN_PROTECTED = ("raised", "goalReachedNotified", "createdBy", "createdAt", "updatedAt")
GOAL_FLAG = "goalReachedNotified"


def format_amount(amount: float) -> str:
    return f"{amount:g}" if float(amount).is_integer() else f"{amount:.2f}"


def campaign_progress(raised: float, goal: float) -> int:
    if not goal or goal <= 0:
        return 0
    return min(int(math.floor(raised / goal * 100 + 0.5)), 100)


def present_campaign(campaign: dict) -> dict:
    doc = serialize(campaign)
    doc.pop(GOAL_FLAG, None)
    doc["progress"] = campaign_progress(campaign.get("raised", 0), campaign.get("goal", 0))
    end = campaign.get("endDate")
    doc["isExpired"] = isinstance(end, datetime) and utcnow() > naive_utc(end)
    return doc


def present_donation(donation: dict, public: bool = False) -> dict:
    doc = serialize(donation)
    if public:
        doc.pop("donorEmail", None)
        if donation.get("isAnonymous"):
            doc["donorName"] = "Anonymous"
    return doc


class CampaignLedger:
    def __init__(
        self,
        store: RecordStore,
        emitter: NotificationEmitter,
        notify_goal_once: bool = GOAL_REACHED_NOTIFY_ONCE,
    ):
        self.store = store
        self.emitter = emitter
        self.notify_goal_once = notify_goal_once

    def _get_or_404(self, campaign_id: str) -> dict:
        if to_object_id(campaign_id) is None:
            raise ValidationError("Invalid campaign ID format")
        campaign = self.store.get_document(CAMPAIGN, campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign not found")
        return campaign

    @staticmethod
    def _check_dates(model: Campaign) -> None:
        model.startDate = naive_utc(model.startDate)
        model.endDate = naive_utc(model.endDate)
        if model.endDate < model.startDate:
            raise ValidationError("endDate must not be before startDate")

    # Campaigns

    def list_campaigns(self, active_only: bool = False) -> List[dict]:
        query = {"isActive": True} if active_only else {}
        items = self.store.get_documents(CAMPAIGN, query, sort=[("createdAt", -1)])
        return [present_campaign(c) for c in items]

    def get_campaign(self, campaign_id: str) -> dict:
        return present_campaign(self._get_or_404(campaign_id))

    def create_campaign(self, payload: dict, identity: Identity) -> dict:
        validate_payload("campaign", payload)
        data = clean_patch(payload, CAMPAIGN_PROTECTED)
        data.update({"raised": 0, "isActive": True, "createdBy": identity.id})
        model = build_model(Campaign, data)
        self._check_dates(model)

        campaign = self.store.create_document(CAMPAIGN, model)
        logger.info("Campaign %s created by %s", campaign["_id"], identity.email)
        self.emitter.emit(
            "New Campaign",
            f"New fundraising campaign created: {model.title}",
            "info",
            "all",
        )
        return present_campaign(campaign)

    def update_campaign(self, campaign_id: str, payload: dict) -> dict:
        existing = self._get_or_404(campaign_id)
        patch = clean_patch(payload, CAMPAIGN_PROTECTED)
        validate_payload("campaign_update", patch)
        patch = {k: v for k, v in patch.items() if k in Campaign.model_fields}
        if not patch:
            return present_campaign(existing)

        merged = {k: existing[k] for k in Campaign.model_fields if k in existing}
        merged.update(patch)
        model = build_model(Campaign, merged)
        self._check_dates(model)

        values = model.model_dump()
        updated = self.store.update_document(CAMPAIGN, existing["_id"], {k: values[k] for k in patch})
        if updated is None:
            raise NotFoundError("Campaign not found")
        return present_campaign(updated)

    def toggle_active(self, campaign_id: str) -> dict:
        if to_object_id(campaign_id) is None:
            raise ValidationError("Invalid campaign ID format")
        campaign = self.store.toggle(CAMPAIGN, campaign_id, "isActive")
        if campaign is None:
            raise NotFoundError("Campaign not found")
        state = "activated" if campaign.get("isActive") else "deactivated"
        logger.info("Campaign %s %s", campaign["_id"], state)
        self.emitter.emit(
            "Campaign Status Changed",
            f'Fundraising campaign "{campaign.get("title")}" has been {state}',
            "info",
            "admin",
        )
        return present_campaign(campaign)

    def delete_campaign(self, campaign_id: str) -> dict:
        campaign = self._get_or_404(campaign_id)
        if self.store.exists(DONATION, {"campaignId": str(campaign["_id"])}):
            raise ConflictError(
                "Cannot delete campaign with existing donations. Consider marking it as inactive instead."
            )
        self.store.delete_document(CAMPAIGN, campaign["_id"])
        logger.info("Campaign %s deleted", campaign["_id"])
        return {"message": "Campaign deleted successfully"}

    # Donations

    def record_donation(self, campaign_id: str, amount, donor_info: dict) -> dict:
        """
        Persist a completed donation and add it to the campaign's total.

        Replaying a known ``transactionId`` returns the stored donation
        without touching the total.

        Raises:
            InvalidAmountError: amount <= 0
            NotFoundError: campaign does not exist
            InactiveCampaignError: campaign is not active
        """
        amount = validate_amount(amount)

        transaction_id = optional_str(donor_info.get("transactionId"))
        if transaction_id:
            previous = self.store.find_one(DONATION, {"transactionId": transaction_id})
            if previous is not None:
                logger.info("Replayed donation %s ignored", transaction_id)
                return present_donation(previous)

        campaign = self._get_or_404(campaign_id)
        if not campaign.get("isActive"):
            raise InactiveCampaignError("This campaign is no longer active")

        alumni_id = optional_str(donor_info.get("alumniId"))
        if alumni_id and to_object_id(alumni_id) is None:
            raise ValidationError("Invalid alumni ID format")

        donation = build_model(
            Donation,
            {
                "campaignId": str(campaign["_id"]),
                "alumniId": alumni_id,
                "donorName": donor_info.get("name"),
                "donorEmail": donor_info.get("email"),
                "amount": amount,
                "message": optional_str(donor_info.get("message")),
                "isAnonymous": bool(donor_info.get("isAnonymous", False)),
                "paymentStatus": "completed",
                "transactionId": transaction_id or uuid.uuid4().hex,
            },
        )
        try:
            created = self.store.create_document(DONATION, donation)
        except DuplicateKeyError:
            previous = self.store.find_one(DONATION, {"transactionId": donation.transactionId})
            logger.info("Concurrent replay of donation %s ignored", donation.transactionId)
            return present_donation(previous)

        updated = self.store.increment(
            CAMPAIGN, {"_id": campaign["_id"], "isActive": True}, "raised", donation.amount
        )
        if updated is None:
            # campaign deactivated or deleted between the check and the increment
            self.store.delete_document(DONATION, created["_id"])
            raise InactiveCampaignError("This campaign is no longer active")

        logger.info(
            "Donation %s of %s to campaign %s (raised=%s/%s)",
            created["_id"], format_amount(amount), campaign["_id"], updated.get("raised"), updated.get("goal"),
        )

        donor = "Anonymous donor" if donation.isAnonymous else donation.donorName
        self.emitter.emit(
            "New Donation",
            f'New donation of ${format_amount(amount)} received from {donor} for campaign "{campaign.get("title")}"',
            "success",
            "admin",
        )
        self._check_goal(updated)
        return present_donation(created)

    def _check_goal(self, campaign: dict) -> None:
        if campaign.get("raised", 0) < campaign.get("goal", 0):
            return
        if self.notify_goal_once and not self.store.claim_flag(CAMPAIGN, campaign["_id"], GOAL_FLAG):
            logger.debug("Goal notice for campaign %s already sent", campaign["_id"])
            return
        self.emitter.emit(
            "Campaign Goal Reached",
            f'Fundraising goal reached for campaign "{campaign.get("title")}"!',
            "success",
            "all",
        )

    def list_donations(self, campaign_id: str, public: bool = True) -> List[dict]:
        if to_object_id(campaign_id) is None:
            raise ValidationError("Invalid campaign ID format")
        items = self.store.get_documents(DONATION, {"campaignId": campaign_id}, sort=[("createdAt", -1)])
        return [present_donation(d, public=public) for d in items]

    def list_donations_by_alumni(self, alumni_id: str) -> List[dict]:
        if to_object_id(alumni_id) is None:
            raise ValidationError("Invalid alumni ID format")
        items = self.store.get_documents(DONATION, {"alumniId": alumni_id}, sort=[("createdAt", -1)])
        titles = self._campaign_titles()
        out = []
        for d in items:
            doc = present_donation(d)
            doc["campaignTitle"] = titles.get(d.get("campaignId"))
            out.append(doc)
        return out

    def _campaign_titles(self) -> dict:
        campaigns = self.store.get_documents(CAMPAIGN, {}, projection={"title": 1})
        return {str(c["_id"]): c.get("title") for c in campaigns}

    def donation_stats(self, recent_limit: int = 10) -> dict:
        completed = self.store.get_documents(DONATION, {"paymentStatus": "completed"}, projection={"amount": 1})
        recent = self.store.get_documents(
            DONATION, {"paymentStatus": "completed"}, sort=[("createdAt", -1)], limit=recent_limit
        )
        campaigns = self.store.get_documents(
            CAMPAIGN, {}, sort=[("createdAt", -1)], projection={"title": 1, "goal": 1, "raised": 1}
        )
        titles = {str(c["_id"]): c.get("title") for c in campaigns}

        recent_out = []
        for d in recent:
            doc = present_donation(d)
            doc["campaignTitle"] = titles.get(d.get("campaignId"))
            recent_out.append(doc)

        return {
            "totalDonations": len(completed),
            "totalAmount": sum(d.get("amount", 0) for d in completed),
            "recentDonations": recent_out,
            "campaigns": [serialize(c) for c in campaigns],
        }
