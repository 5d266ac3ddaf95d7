"""
Authentication: password hashing, JWT issue/verify and the current-identity
dependencies used by the routes.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET
from database import USER, RecordStore, get_store, serialize
from errors import AuthError, ConflictError
from schemas import LoginBody, SignUpBody, User as UserSchema

logger = logging.getLogger("alumni.auth")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    role: str
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def token_for_user(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        {"sub": str(user["_id"]), "email": user["email"], "role": user.get("role", "user")},
        expires_delta,
    )


def user_to_public(u: dict) -> dict:
    if not u:
        return u
    u = serialize(u)
    u.pop("password", None)
    return u


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise AuthError("Invalid or expired token")
    if not payload.get("sub"):
        raise AuthError("Invalid or expired token")
    return payload


def resolve_identity(store: RecordStore, token: str) -> Identity:
    payload = decode_token(token)
    user = store.get_document(USER, payload["sub"])
    if user is None:
        raise AuthError("Could not validate credentials")
    return Identity(
        id=str(user["_id"]),
        email=user["email"],
        role=user.get("role", "user"),
        name=user.get("name", ""),
    )


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: RecordStore = Depends(get_store),
) -> Optional[Identity]:
    """Identity of the caller, or None for anonymous callers and unusable tokens."""
    if credentials is None:
        return None
    try:
        return resolve_identity(store, credentials.credentials)
    except AuthError as e:
        logger.debug("Ignoring bearer token on optional-auth route: %s", e.message)
        return None


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: RecordStore = Depends(get_store),
) -> Identity:
    if credentials is None:
        raise AuthError("Access denied. No token provided.")
    return resolve_identity(store, credentials.credentials)


def signup(store: RecordStore, body: SignUpBody) -> dict:
    email = body.email.lower()
    if store.find_one(USER, {"email": email}):
        raise ConflictError("Email already registered")
    user_doc = UserSchema(
        name=body.name,
        email=email,
        password=hash_password(body.password),
        role="user",
    )
    try:
        user = store.create_document(USER, user_doc)
    except DuplicateKeyError:
        raise ConflictError("Email already registered")
    logger.info("Registered user %s", email)
    return user


def login(store: RecordStore, body: LoginBody) -> dict:
    user = store.find_one(USER, {"email": body.email.lower()})
    if not user or not verify_password(body.password, user.get("password", "")):
        raise AuthError("Incorrect email or password")
    return user


def ensure_admin_user(store: RecordStore, email: str, password: str, name: str = "Administrator") -> dict:
    """Create the admin account, or promote an existing account with that email."""
    email = email.lower()
    existing = store.find_one(USER, {"email": email})
    if existing:
        if existing.get("role") != "admin":
            existing = store.update_document(USER, existing["_id"], {"role": "admin"})
            logger.info("Promoted %s to admin", email)
        return existing
    user = store.create_document(
        USER, UserSchema(name=name, email=email, password=hash_password(password), role="admin")
    )
    logger.info("Created admin user %s", email)
    return user
