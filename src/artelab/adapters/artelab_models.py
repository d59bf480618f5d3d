"""Pydantic models for ArteLab API payloads."""

from pydantic import BaseModel, ConfigDict, Field

from artelab.domain.models import AuthResult, UserIdentity


class SignupRequest(BaseModel):
    """Body of POST auth/signup."""

    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    """Body of POST auth/login."""

    email: str
    password: str


class UserData(BaseModel):
    """User payload embedded in auth responses."""

    id: int
    email: str
    name: str
    created_at: int | None = None

    def to_identity(self) -> UserIdentity:
        return UserIdentity(
            id=self.id,
            email=self.email,
            name=self.name,
            created_at=self.created_at,
        )


class AuthResponse(BaseModel):
    """Response of signup and login."""

    model_config = ConfigDict(populate_by_name=True)

    auth_token: str = Field(alias="authToken")
    user: UserData

    def to_result(self) -> AuthResult:
        return AuthResult(token=self.auth_token, user=self.user.to_identity())


class UserResponse(UserData):
    """Response of GET auth/me."""

    model_config = ConfigDict(populate_by_name=True)

    avatar_url: str | None = Field(default=None, alias="avatarUrl")

    def to_identity(self) -> UserIdentity:
        return UserIdentity(
            id=self.id,
            email=self.email,
            name=self.name,
            created_at=self.created_at,
            avatar_url=self.avatar_url,
        )
