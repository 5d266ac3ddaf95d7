import logging
from typing import Optional

from fastapi import Body, Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from auth import (
    Identity,
    ensure_admin_user,
    get_current_identity,
    get_optional_identity,
    login as login_user,
    signup as signup_user,
    token_for_user,
    user_to_public,
)
from config import settings
from database import USER, RecordStore, get_store
from errors import register_error_handlers
from ledger import CampaignLedger
from logging_config import setup_logging
from notifications import NotificationEmitter
from policy import enforce
from records import AlumniDirectory, FeedbackBoard, get_college_info, upsert_college_info
from schemas import LoginBody, ScrapeBody, SignUpBody, TokenResponse
from scraper import scrape
from validation import validate_payload

logger = logging.getLogger("alumni.api")

# App setup
app = FastAPI(title="Alumni Portal API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.on_event("startup")
def on_startup():
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    store = get_store()
    try:
        store.ensure_indexes()
        if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            ensure_admin_user(store, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME)
    except PyMongoError as e:
        logger.warning("Database not reachable at startup, some features may not work: %s", e)


# Dependencies

def get_emitter(store: RecordStore = Depends(get_store)) -> NotificationEmitter:
    return NotificationEmitter(store)


def get_ledger(
    store: RecordStore = Depends(get_store),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> CampaignLedger:
    return CampaignLedger(store, emitter)


def get_alumni_directory(
    store: RecordStore = Depends(get_store),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> AlumniDirectory:
    return AlumniDirectory(store, emitter)


def get_feedback_board(
    store: RecordStore = Depends(get_store),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> FeedbackBoard:
    return FeedbackBoard(store, emitter)


# Auth

@app.post("/api/auth/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignUpBody, store: RecordStore = Depends(get_store)):
    user = signup_user(store, body)
    return TokenResponse(access_token=token_for_user(user), user=user_to_public(user))


@app.post("/api/auth/login", response_model=TokenResponse)
def login(body: LoginBody, store: RecordStore = Depends(get_store)):
    user = login_user(store, body)
    return TokenResponse(access_token=token_for_user(user), user=user_to_public(user))


@app.get("/api/auth/me")
def me(identity: Identity = Depends(get_current_identity), store: RecordStore = Depends(get_store)):
    return user_to_public(store.get_document(USER, identity.id))


# Alumni

@app.get("/api/alumni")
def list_alumni(directory: AlumniDirectory = Depends(get_alumni_directory)):
    return directory.list()


@app.get("/api/alumni/batch/{batch}")
def list_alumni_by_batch(batch: str, directory: AlumniDirectory = Depends(get_alumni_directory)):
    return directory.by_batch(batch)


@app.get("/api/alumni/{alumni_id}")
def get_alumni(alumni_id: str, directory: AlumniDirectory = Depends(get_alumni_directory)):
    return directory.get(alumni_id)


@app.post("/api/alumni", status_code=status.HTTP_201_CREATED)
def create_alumni(
    payload: dict = Body(...),
    identity: Optional[Identity] = Depends(get_optional_identity),
    directory: AlumniDirectory = Depends(get_alumni_directory),
):
    enforce("alumni.create", identity)
    return directory.create(payload, identity)


@app.put("/api/alumni/{alumni_id}")
def update_alumni(
    alumni_id: str,
    payload: dict = Body(...),
    identity: Identity = Depends(get_current_identity),
    directory: AlumniDirectory = Depends(get_alumni_directory),
):
    # ownership is checked against the stored record inside update()
    return directory.update(alumni_id, payload, identity)


@app.delete("/api/alumni/{alumni_id}")
def delete_alumni(
    alumni_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    directory: AlumniDirectory = Depends(get_alumni_directory),
):
    enforce("alumni.delete", identity)
    return directory.delete(alumni_id)


@app.patch("/api/alumni/{alumni_id}/verify")
def verify_alumni(
    alumni_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    directory: AlumniDirectory = Depends(get_alumni_directory),
):
    enforce("alumni.verify", identity)
    return directory.verify(alumni_id)


# Fundraising campaigns

@app.get("/api/fundraising")
def list_campaigns(ledger: CampaignLedger = Depends(get_ledger)):
    return ledger.list_campaigns()


@app.get("/api/fundraising/active")
def list_active_campaigns(ledger: CampaignLedger = Depends(get_ledger)):
    return ledger.list_campaigns(active_only=True)


@app.get("/api/fundraising/{campaign_id}")
def get_campaign(campaign_id: str, ledger: CampaignLedger = Depends(get_ledger)):
    return ledger.get_campaign(campaign_id)


@app.post("/api/fundraising", status_code=status.HTTP_201_CREATED)
def create_campaign(
    payload: dict = Body(...),
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    enforce("campaign.create", identity)
    return ledger.create_campaign(payload, identity)


@app.put("/api/fundraising/{campaign_id}")
def update_campaign(
    campaign_id: str,
    payload: dict = Body(...),
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    enforce("campaign.update", identity)
    return ledger.update_campaign(campaign_id, payload)


@app.delete("/api/fundraising/{campaign_id}")
def delete_campaign(
    campaign_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    enforce("campaign.delete", identity)
    return ledger.delete_campaign(campaign_id)


@app.patch("/api/fundraising/{campaign_id}/toggle-status")
def toggle_campaign_status(
    campaign_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    enforce("campaign.toggle", identity)
    return ledger.toggle_active(campaign_id)


# Donations

@app.get("/api/donation/stats")
def donation_stats(
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    enforce("donation.stats", identity)
    return ledger.donation_stats()


@app.get("/api/donation/campaign/{campaign_id}")
def list_campaign_donations(
    campaign_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    public = not (identity and identity.is_admin)
    return ledger.list_donations(campaign_id, public=public)


@app.get("/api/donation/alumni/{alumni_id}")
def list_alumni_donations(
    alumni_id: str,
    identity: Identity = Depends(get_current_identity),
    ledger: CampaignLedger = Depends(get_ledger),
):
    enforce("donation.list_by_alumni", identity, {"alumniId": alumni_id})
    return ledger.list_donations_by_alumni(alumni_id)


@app.post("/api/donation", status_code=status.HTTP_201_CREATED)
def create_donation(payload: dict = Body(...), ledger: CampaignLedger = Depends(get_ledger)):
    validate_payload("donation", payload)
    return ledger.record_donation(payload["campaignId"], payload["amount"], payload)


# Feedback

@app.get("/api/feedback")
def list_feedback(
    identity: Optional[Identity] = Depends(get_optional_identity),
    board: FeedbackBoard = Depends(get_feedback_board),
):
    return board.list(identity)


@app.get("/api/feedback/{feedback_id}")
def get_feedback(
    feedback_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    board: FeedbackBoard = Depends(get_feedback_board),
):
    return board.get(feedback_id, identity)


@app.post("/api/feedback", status_code=status.HTTP_201_CREATED)
def create_feedback(payload: dict = Body(...), board: FeedbackBoard = Depends(get_feedback_board)):
    return board.create(payload)


@app.patch("/api/feedback/{feedback_id}/approve")
def approve_feedback(
    feedback_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    board: FeedbackBoard = Depends(get_feedback_board),
):
    enforce("feedback.approve", identity)
    return board.approve(feedback_id)


@app.delete("/api/feedback/{feedback_id}")
def delete_feedback(
    feedback_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    board: FeedbackBoard = Depends(get_feedback_board),
):
    enforce("feedback.delete", identity)
    return board.delete(feedback_id)


# Notifications

@app.get("/api/notification")
def list_notifications(
    identity: Identity = Depends(get_current_identity),
    emitter: NotificationEmitter = Depends(get_emitter),
):
    return emitter.list_for(identity)


@app.patch("/api/notification/mark-all-read")
def mark_all_notifications_read(
    identity: Identity = Depends(get_current_identity),
    emitter: NotificationEmitter = Depends(get_emitter),
):
    return emitter.mark_all_read(identity)


@app.patch("/api/notification/{notification_id}/read")
def mark_notification_read(
    notification_id: str,
    identity: Identity = Depends(get_current_identity),
    emitter: NotificationEmitter = Depends(get_emitter),
):
    return emitter.mark_read(notification_id, identity)


# College info

@app.get("/api/college-info")
def read_college_info(store: RecordStore = Depends(get_store)):
    return get_college_info(store)


@app.put("/api/college-info")
def update_college_info(
    payload: dict = Body(...),
    identity: Optional[Identity] = Depends(get_optional_identity),
    store: RecordStore = Depends(get_store),
):
    enforce("college_info.update", identity)
    return upsert_college_info(store, payload)


# Scraper

@app.post("/api/scraper/scrape")
def scrape_profiles(body: ScrapeBody, identity: Optional[Identity] = Depends(get_optional_identity)):
    enforce("scraper.scrape", identity)
    return scrape(body.keywords, body.source, body.limit)


@app.post("/api/scraper/add-scraped-profile", status_code=status.HTTP_201_CREATED)
def add_scraped_profile(
    payload: dict = Body(...),
    identity: Optional[Identity] = Depends(get_optional_identity),
    directory: AlumniDirectory = Depends(get_alumni_directory),
):
    enforce("scraper.promote", identity)
    return directory.promote_scraped_profile(payload)


@app.get("/")
def read_root():
    return {"message": "Alumni Portal API is running"}


@app.get("/api/health")
def health(store: RecordStore = Depends(get_store)):
    response = {
        "status": "ok",
        "message": "Server is running",
        "database": "❌ Not Available",
        "database_name": None,
        "collections": [],
    }
    try:
        store.ping()
        response["database"] = "✅ Connected & Working"
        response["database_name"] = store.name
        response["collections"] = store.db.list_collection_names()[:10]
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
