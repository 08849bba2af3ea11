# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""User snapshot and token schemas.

Field aliases follow the camelCase wire format of the auth backend, which is
also the format the snapshot is persisted in.
"""
import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from session_lifecycle.models.enums import UserRole


class CamelModel(BaseModel):
    """Base schema accepting both field names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class UserPreferences(CamelModel):
    """Display preferences stored with the user."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    language: str = "en"
    notifications: bool = True
    theme: Literal["light", "dark"] = "light"


class SellerProfile(CamelModel):
    """Seller onboarding status used by route protection."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    verification_status: str = Field("unverified", alias="verificationStatus")
    payment_status: Optional[str] = Field(None, alias="paymentStatus")


class User(CamelModel):
    """Snapshot of the authenticated user.

    Fields the auth backend sends beyond the declared ones are kept as
    extras, so the persisted snapshot is the backend payload in full.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    email: EmailStr
    name: str
    user_type: UserRole = Field(..., alias="userType")
    is_verified: bool = Field(False, alias="isVerified")
    created_at: datetime.datetime = Field(..., alias="createdAt")
    phone: Optional[str] = None
    avatar: Optional[str] = None
    preferences: Optional[UserPreferences] = None
    seller_profile: Optional[SellerProfile] = Field(None, alias="sellerProfile")

    @property
    def role(self) -> UserRole:
        return self.user_type

    def to_storage(self) -> str:
        """Serialize for the durable store."""
        return self.model_dump_json(by_alias=True)


class TokenResponse(CamelModel):
    """Result of exchanging a refresh token."""

    token: str
    refresh_token: str = Field(..., alias="refreshToken")
    expires_in: int = Field(..., alias="expiresIn")  # milliseconds
