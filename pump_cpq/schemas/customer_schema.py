"""Customer contact data model."""

from pydantic import BaseModel
from typing import Optional


class CustomerInfo(BaseModel):
    """Customer contact details accumulated during a quote session.

    ``company`` is tri-state: ``None`` means not yet decided, ``""`` means
    the customer skipped it (or it is personal use), anything else is the
    company name.
    """
    name: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone)

    @property
    def company_resolved(self) -> bool:
        return self.company is not None
