"""Request bodies for the JSON API.

Clients send camelCase keys; snake_case is accepted too. Each model names
the message used when its body fails validation.
"""

from datetime import datetime
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from vault.auth.service import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from vault.dal.models import GroupType, ShareTarget, Visibility

NAME_MAX_LENGTH = 100
TITLE_MAX_LENGTH = 200
TEXT_MAX_LENGTH = 2000
URL_MAX_LENGTH = 2048


class ApiRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    invalid_message: ClassVar[str] = "Invalid request"


class SignupRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid signup data"

    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=32)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    first_name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    last_name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)

    @model_validator(mode="after")
    def _require_contact(self) -> Self:
        if not self.email and not (self.phone and self.phone.strip()):
            raise ValueError("Email or phone is required")
        return self


class LoginRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Email and password are required"

    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class ForgotPasswordRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Email is required"

    email: str = Field(min_length=1, max_length=320)


class ResetPasswordRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid reset request"

    token: str = Field(min_length=1, max_length=256)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


def _check_url(value: str | None) -> str | None:
    if value is not None and not value.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return value


class LinkCreateRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid link data"

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    url: str = Field(min_length=1, max_length=URL_MAX_LENGTH)
    institution: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    category: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    notes: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    bonus_value: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    expires_at: datetime | None = None
    visibility: Visibility = Visibility.PRIVATE

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str | None) -> str | None:
        return _check_url(v)


class LinkUpdateRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid link data"

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    url: str | None = Field(default=None, min_length=1, max_length=URL_MAX_LENGTH)
    institution: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    category: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    notes: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    bonus_value: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    expires_at: datetime | None = None
    visibility: Visibility | None = None

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str | None) -> str | None:
        return _check_url(v)


class ArchiveRequest(ApiRequest):
    archive: bool = True


class GroupCreateRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid group data"

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    type: GroupType = GroupType.FRIENDS


class GroupUpdateRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid group data"

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEXT_MAX_LENGTH)
    type: GroupType | None = None


class InviteRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Invalid email list"

    emails: list[EmailStr] = Field(min_length=1, max_length=100)


class ShareRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Missing required fields"

    link_id: str = Field(min_length=1)
    target_type: ShareTarget
    group_ids: list[str] = Field(default_factory=list, max_length=100)
    emails: list[EmailStr] = Field(default_factory=list, max_length=100)


class ClickRequest(ApiRequest):
    invalid_message: ClassVar[str] = "Link ID required"

    link_id: str = Field(min_length=1)
