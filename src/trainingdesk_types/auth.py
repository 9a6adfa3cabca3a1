from typing import Optional
from pydantic import BaseModel, ConfigDict


class StaffPrincipal(BaseModel):
    """Authenticated staff member, stored in the signed session cookie."""

    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    provider: str = "google"

    model_config = ConfigDict(frozen=True)


class OAuthUserInfo(BaseModel):
    """Subset of the OpenID Connect userinfo response we rely on."""

    sub: Optional[str] = None
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class AuthProviderInfo(BaseModel):
    id: str
    name: str
    enabled: bool
    login_url: str
