"""
Database Schemas for the Alumni Portal

Each Pydantic model corresponds to a MongoDB collection
(see the collection names in database.py). Request bodies live at the bottom.
"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

NotificationType = Literal["info", "success", "warning", "error"]
Audience = Literal["admin", "all"]
PaymentStatus = Literal["pending", "completed", "failed"]
Role = Literal["user", "admin"]


class AlumniSocialLinks(BaseModel):
    linkedin: Optional[str] = None
    naukri: Optional[str] = None
    twitter: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    website: Optional[str] = None


class CollegeSocialLinks(BaseModel):
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None
    youtube: Optional[str] = None


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Login email")
    password: str = Field(..., description="Hashed password")
    role: Role = Field("user", description="user | admin")


class Alumni(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    batch: int = Field(..., description="Graduation year")
    degree: str = Field(..., min_length=1)
    occupation: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    profilePicture: Optional[str] = None
    socialLinks: AlumniSocialLinks = Field(default_factory=AlumniSocialLinks)
    isVerified: bool = False

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class Feedback(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    alumniName: str = Field(..., min_length=1)
    alumniId: Optional[str] = Field(None, description="Reference to Alumni _id as string")
    text: Optional[str] = None
    videoUrl: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    isApproved: bool = False


class Campaign(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    goal: float = Field(..., gt=0, allow_inf_nan=False)
    raised: float = Field(default=0, ge=0)
    startDate: datetime
    endDate: datetime
    image: Optional[str] = None
    isActive: bool = True
    createdBy: Optional[str] = Field(None, description="Reference to User _id as string")


class Donation(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    campaignId: str = Field(..., description="Reference to Campaign _id as string")
    alumniId: Optional[str] = None
    donorName: str = Field(..., min_length=1)
    donorEmail: EmailStr
    amount: float = Field(..., ge=1, allow_inf_nan=False)
    message: Optional[str] = None
    isAnonymous: bool = False
    paymentStatus: PaymentStatus = "completed"
    paymentMethod: str = "direct"
    transactionId: str

    @field_validator("donorEmail")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class Notification(BaseModel):
    title: str
    message: str
    type: NotificationType = "info"
    audience: Audience = "admin"
    isRead: bool = False
    link: Optional[str] = None


class CollegeInfo(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    address: str
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: str
    description: Optional[str] = None
    foundedYear: int
    totalAlumni: int = 0
    totalFundsRaised: float = 0
    logo: Optional[str] = None
    socialLinks: CollegeSocialLinks = Field(default_factory=CollegeSocialLinks)


# Request bodies

class SignUpBody(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginBody(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


class ScrapeBody(BaseModel):
    keywords: Any = None
    source: Optional[str] = None
    limit: Any = 5
