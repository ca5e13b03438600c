# =============================================================================
# core/models/contact.py - Contact Form Schema
# =============================================================================
# Validation of public contact form submissions. Error messages are shown to
# the visitor as-is, so each rule raises its own readable message.
# =============================================================================

import re
from typing import Optional

from pydantic import BaseModel, model_validator
from pydantic_core import PydanticCustomError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# field -> (label, max length)
FIELD_LIMITS = {
    "name": ("Name", 100),
    "email": ("Email", 255),
    "subject": ("Subject", 200),
    "message": ("Message", 5000),
}


class ContactRequest(BaseModel):
    """A contact form submission."""

    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self) -> "ContactRequest":
        if not (self.name and self.email and self.subject and self.message):
            raise PydanticCustomError(
                "contact_missing_fields",
                "Missing required fields: name, email, subject, and message are required",
            )

        if not EMAIL_PATTERN.match(self.email):
            raise PydanticCustomError("contact_invalid_email", "Invalid email address format")

        for field, (label, limit) in FIELD_LIMITS.items():
            if len(getattr(self, field)) > limit:
                raise PydanticCustomError(
                    "contact_too_long",
                    "{label} must be less than {limit} characters",
                    {"label": label, "limit": limit},
                )
        return self


class ContactResponse(BaseModel):
    success: bool = True
    message: str = "Email sent successfully"
