"""Pydantic schemas for purchases and transactions.

Purchase input accepts the camelCase names used by the storefront
(``transactionId``/``txnId``, ``paymentMethod``, ``courseId``) as well as
snake_case. Required fields are optional at the schema level so a missing
field is reported as ``MISSING_FIELDS`` rather than a schema error.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.networks import validate_email

from src.purchases.models import Transaction, TransactionStatus


# ==============================================================================
# Request Schemas
# ==============================================================================


class PurchaseRequest(BaseModel):
    """Guest checkout request."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(None, max_length=100, description="Buyer name")
    email: str | None = Field(None, max_length=254, description="Buyer email")
    phone: str | None = Field(None, max_length=20, description="Buyer phone")
    transaction_id: str | None = Field(
        None,
        max_length=100,
        validation_alias=AliasChoices("transactionId", "txnId", "transaction_id"),
        description="Payment reference from the wallet",
    )
    payment_method: str | None = Field(
        None,
        max_length=50,
        validation_alias=AliasChoices("paymentMethod", "payment_method"),
        description="bkash, nagad, rocket...",
    )
    course_id: str | None = Field(
        None,
        max_length=100,
        validation_alias=AliasChoices("courseId", "course_id"),
    )
    amount: Decimal | None = Field(None, ge=0, description="Amount paid")

    @field_validator("name", "email", "phone", "transaction_id", "payment_method", "course_id")
    @classmethod
    def strip_blank(cls, v: str | None) -> str | None:
        """Blank strings count as absent."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str | None) -> str | None:
        if v is None:
            return None
        _, email = validate_email(v)
        return email.lower()


class VerifyPaymentRequest(BaseModel):
    """Manual payment confirmation."""

    model_config = ConfigDict(populate_by_name=True)

    transaction_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("transactionId", "txnId", "transaction_id"),
    )


# ==============================================================================
# Response Schemas
# ==============================================================================


class PurchaseResponse(BaseModel):
    """Accepted purchase; activation follows asynchronously."""

    success: bool = True
    message: str
    transaction_id: str
    status: TransactionStatus = TransactionStatus.PENDING


class TransactionResponse(BaseModel):
    """Response schema for a single transaction."""

    transaction_id: str
    user_id: UUID
    course_id: str
    amount: Decimal
    payment_method: str
    status: TransactionStatus
    payment_details: dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_transaction(cls, txn: Transaction) -> "TransactionResponse":
        """Create response from Transaction entity."""
        return cls(
            transaction_id=txn.transaction_id,
            user_id=txn.user_id,
            course_id=txn.course_id,
            amount=txn.amount,
            payment_method=txn.payment_method,
            status=txn.status,
            payment_details=txn.payment_details,
            created_at=txn.created_at,
            updated_at=txn.updated_at,
        )


class TransactionListResponse(BaseModel):
    """Response schema for listing transactions."""

    items: list[TransactionResponse]
    total: int


class VerifyPaymentResponse(BaseModel):
    """Result of a manual verification."""

    success: bool = True
    activated: bool = Field(..., description="False when already activated")
    transaction: TransactionResponse
