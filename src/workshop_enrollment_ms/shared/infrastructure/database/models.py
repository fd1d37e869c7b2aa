"""ORM models for SQLAlchemy."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from workshop_enrollment_ms.features.cart.domain.entities import Cart, CartItem
from workshop_enrollment_ms.features.catalog.domain.entities import (
    PricingOption,
    Workshop,
)
from workshop_enrollment_ms.features.enrollments.domain.entities import Enrollment
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus
from workshop_enrollment_ms.features.waitlist.domain.entities import (
    WaitlistClaim,
    WaitlistEntry,
)
from workshop_enrollment_ms.features.waitlist.domain.enums import WaitlistStatus
from workshop_enrollment_ms.shared.domain.clock import ensure_aware, utc_now
from workshop_enrollment_ms.shared.infrastructure.database.connection import Base

# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class WorkshopModel(Base):
    """
    Workshop ORM model.

    Maps to the 'workshops' table. Rows are written by the content
    subsystem; this service only reads them.
    """

    __tablename__ = "workshops"

    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(255), nullable=False)
    url = Column(Text, nullable=False, default="")
    published = Column(Boolean, nullable=False, default=True)
    checkout_enabled = Column(Boolean, nullable=False, default=True)

    # 0 means unlimited
    capacity = Column(Integer, nullable=False, default=0)
    waitlist_enabled = Column(Boolean, nullable=False, default=False)

    base_price = Column(Numeric(10, 2), nullable=False, default=0)
    pricing_options = Column(JSONType, nullable=False, default=list)

    def to_domain(self) -> Workshop:
        """Convert ORM model to domain entity."""
        return Workshop(
            id=self.id,
            title=self.title,
            url=self.url or "",
            published=bool(self.published),
            checkout_enabled=bool(self.checkout_enabled),
            capacity=self.capacity or 0,
            waitlist_enabled=bool(self.waitlist_enabled),
            base_price=Decimal(str(self.base_price or 0)),
            pricing_options=[
                PricingOption(
                    id=str(option.get("id", "")),
                    label=option.get("label", ""),
                    price=Decimal(str(option.get("price", 0))),
                    is_default=bool(option.get("is_default", False)),
                )
                for option in (self.pricing_options or [])
            ],
        )

    @classmethod
    def from_domain(cls, workshop: Workshop) -> "WorkshopModel":
        return cls(
            id=workshop.id,
            title=workshop.title,
            url=workshop.url,
            published=workshop.published,
            checkout_enabled=workshop.checkout_enabled,
            capacity=workshop.capacity,
            waitlist_enabled=workshop.waitlist_enabled,
            base_price=workshop.base_price,
            pricing_options=[
                {
                    "id": option.id,
                    "label": option.label,
                    "price": str(option.price),
                    "is_default": option.is_default,
                }
                for option in workshop.pricing_options
            ],
        )


class EnrollmentModel(Base):
    """Enrollment ORM model, one row per admission."""

    __tablename__ = "enrollments"
    __table_args__ = (
        # one enrollment per workshop per checkout session; NULL sessions never collide
        UniqueConstraint("session_id", "workshop_id", name="uq_enrollments_session_workshop"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True)
    workshop_id = Column(Integer, nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), nullable=False, default=EnrollmentStatus.PENDING.value, index=True)
    pricing_option_id = Column(String(100), nullable=False, default="")

    customer_email = Column(String(255), nullable=False, default="")
    customer_name = Column(String(255), nullable=False, default="")
    customer_phone = Column(String(50), nullable=False, default="")

    # Processor references
    session_id = Column(String(255), nullable=True, index=True)
    payment_reference = Column(String(255), nullable=True, index=True)
    customer_reference = Column(String(255), nullable=True)

    refund_id = Column(String(255), nullable=True)
    refund_reason = Column(Text, nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def to_domain(self) -> Enrollment:
        """Convert ORM model to domain entity."""
        return Enrollment(
            id=self.id,
            workshop_id=self.workshop_id,
            amount=Decimal(str(self.amount)),
            status=EnrollmentStatus(self.status),
            customer_email=self.customer_email or "",
            customer_name=self.customer_name or "",
            customer_phone=self.customer_phone or "",
            currency=self.currency or "usd",
            pricing_option_id=self.pricing_option_id or "",
            session_id=self.session_id,
            payment_reference=self.payment_reference,
            customer_reference=self.customer_reference,
            refund_id=self.refund_id,
            refund_reason=self.refund_reason,
            refunded_at=ensure_aware(self.refunded_at),
            notes=self.notes or "",
            created_at=ensure_aware(self.created_at) or utc_now(),
            updated_at=ensure_aware(self.updated_at) or utc_now(),
        )

    def apply(self, enrollment: Enrollment) -> None:
        """Copy domain state onto this row."""
        self.workshop_id = enrollment.workshop_id
        self.amount = enrollment.amount
        self.currency = enrollment.currency
        self.status = enrollment.status.value
        self.pricing_option_id = enrollment.pricing_option_id
        self.customer_email = enrollment.customer_email
        self.customer_name = enrollment.customer_name
        self.customer_phone = enrollment.customer_phone
        self.session_id = enrollment.session_id
        self.payment_reference = enrollment.payment_reference
        self.customer_reference = enrollment.customer_reference
        self.refund_id = enrollment.refund_id
        self.refund_reason = enrollment.refund_reason
        self.refunded_at = enrollment.refunded_at
        self.notes = enrollment.notes
        self.created_at = enrollment.created_at
        self.updated_at = enrollment.updated_at

    @classmethod
    def from_domain(cls, enrollment: Enrollment) -> "EnrollmentModel":
        model = cls(id=enrollment.id)
        model.apply(enrollment)
        return model


class WaitlistEntryModel(Base):
    """Waitlist entry ORM model."""

    __tablename__ = "waitlist_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    workshop_id = Column(Integer, nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")

    position = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=WaitlistStatus.WAITING.value, index=True)

    notified = Column(Boolean, nullable=False, default=False)
    notified_at = Column(DateTime(timezone=True), nullable=True)
    enrollment_id = Column(Uuid(as_uuid=True), nullable=True)

    claim_token = Column(String(64), nullable=True, unique=True)
    claim_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def to_domain(self) -> WaitlistEntry:
        return WaitlistEntry(
            id=self.id,
            workshop_id=self.workshop_id,
            email=self.email,
            position=self.position,
            status=WaitlistStatus(self.status),
            name=self.name or "",
            phone=self.phone or "",
            notified=bool(self.notified),
            notified_at=ensure_aware(self.notified_at),
            enrollment_id=self.enrollment_id,
            claim_token=self.claim_token,
            claim_token_expires_at=ensure_aware(self.claim_token_expires_at),
            created_at=ensure_aware(self.created_at) or utc_now(),
            updated_at=ensure_aware(self.updated_at) or utc_now(),
        )

    def apply(self, entry: WaitlistEntry) -> None:
        self.workshop_id = entry.workshop_id
        self.email = entry.email
        self.name = entry.name
        self.phone = entry.phone
        self.position = entry.position
        self.status = entry.status.value
        self.notified = entry.notified
        self.notified_at = entry.notified_at
        self.enrollment_id = entry.enrollment_id
        self.claim_token = entry.claim_token
        self.claim_token_expires_at = entry.claim_token_expires_at
        self.created_at = entry.created_at
        self.updated_at = entry.updated_at

    @classmethod
    def from_domain(cls, entry: WaitlistEntry) -> "WaitlistEntryModel":
        model = cls(id=entry.id)
        model.apply(entry)
        return model


class WaitlistClaimModel(Base):
    """A redeemed claim bound to one cart key."""

    __tablename__ = "waitlist_claims"

    owner_key = Column(String(255), primary_key=True)
    entry_id = Column(Uuid(as_uuid=True), nullable=False)
    workshop_id = Column(Integer, nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=False, default="")
    customer_phone = Column(String(50), nullable=False, default="")
    expires_at = Column(DateTime(timezone=True), nullable=False)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)

    def to_domain(self) -> WaitlistClaim:
        return WaitlistClaim(
            owner_key=self.owner_key,
            entry_id=self.entry_id,
            workshop_id=self.workshop_id,
            customer_email=self.customer_email,
            customer_name=self.customer_name or "",
            customer_phone=self.customer_phone or "",
            expires_at=ensure_aware(self.expires_at),
            token_expires_at=ensure_aware(self.token_expires_at),
        )

    def apply(self, claim: WaitlistClaim) -> None:
        self.entry_id = claim.entry_id
        self.workshop_id = claim.workshop_id
        self.customer_email = claim.customer_email
        self.customer_name = claim.customer_name
        self.customer_phone = claim.customer_phone
        self.expires_at = claim.expires_at
        self.token_expires_at = claim.token_expires_at


class CartModel(Base):
    """Cart ORM model. ``expires_at`` moves forward on every save."""

    __tablename__ = "carts"

    key = Column(String(255), primary_key=True)
    items = Column(JSONType, nullable=False, default=list)
    checkout_session_id = Column(String(255), nullable=True, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def to_domain(self) -> Cart:
        return Cart(
            key=self.key,
            items=[
                CartItem(
                    workshop_id=int(item["workshop_id"]),
                    workshop_title=item.get("workshop_title", ""),
                    pricing_option=item.get("pricing_option", ""),
                    price=Decimal(str(item.get("price", "0"))),
                    added_at=_parse_datetime(item.get("added_at")),
                )
                for item in (self.items or [])
            ],
            checkout_session_id=self.checkout_session_id,
            updated_at=ensure_aware(self.updated_at) or utc_now(),
        )

    def apply(self, cart: Cart, expires_at: datetime) -> None:
        self.items = [_item_to_json(item) for item in cart.items]
        self.checkout_session_id = cart.checkout_session_id
        self.updated_at = cart.updated_at
        self.expires_at = expires_at


class ProcessedWebhookEventModel(Base):
    """Recently handled processor event ids."""

    __tablename__ = "processed_webhook_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(255), nullable=False, unique=True)
    event_type = Column(String(100), nullable=False, default="")
    processed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


def _item_to_json(item: CartItem) -> dict[str, Any]:
    return {
        "workshop_id": item.workshop_id,
        "workshop_title": item.workshop_title,
        "pricing_option": item.pricing_option,
        "price": str(item.price),
        "added_at": item.added_at.isoformat(),
    }


def _parse_datetime(value: str | None) -> datetime:
    if not value:
        return utc_now()
    return ensure_aware(datetime.fromisoformat(value)) or utc_now()
