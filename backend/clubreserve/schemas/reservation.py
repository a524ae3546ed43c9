"""Records crossing the boundary of the reservation services."""

from typing import Optional

from pydantic import Field, field_validator

from ..core.enums import RoleName
from .base import StrictModel


class Caller(StrictModel):
    """Authenticated identity as supplied by the identity provider."""

    holder_id: Optional[str] = None
    role: RoleName = RoleName.MEMBER

    @property
    def is_privileged(self) -> bool:
        return self.role.is_privileged


class GuestDescriptor(StrictModel):
    """
    Someone without an account, captured directly on the reservation.

    A usable descriptor has a name and at least one way to reach or
    identify the person; only an admin may book a guest without contact.
    """

    name: str = Field(..., max_length=120)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    document: Optional[str] = Field(None, max_length=50)

    @field_validator("name", "email", "phone", "document", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("email", "phone", "document")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone or self.document)

