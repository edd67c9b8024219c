"""User data models for the authenticated session"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator


class AccountKind(str, Enum):
    """Customer accounts rate; business accounts own an establishment"""
    CUSTOMER = "customer"
    BUSINESS = "business"


class User(BaseModel):
    """Immutable snapshot of the logged-in identity"""
    id: str
    name: str = ""
    email: str = ""
    avatar: Optional[str] = None
    account_kind: AccountKind
    business_id: Optional[str] = None

    class Config:
        frozen = True  # Replaced wholesale, never mutated in place

    @model_validator(mode="after")
    def _business_id_matches_kind(self):
        if self.account_kind == AccountKind.BUSINESS and not self.business_id:
            raise ValueError("business accounts require business_id")
        if self.account_kind == AccountKind.CUSTOMER and self.business_id is not None:
            raise ValueError("customer accounts cannot carry business_id")
        return self

    @property
    def is_business(self) -> bool:
        return self.account_kind == AccountKind.BUSINESS
