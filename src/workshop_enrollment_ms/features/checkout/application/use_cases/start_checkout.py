"""Use case - direct checkout for a single workshop admission."""

from dataclasses import dataclass

from workshop_enrollment_ms.features.catalog.application.ports import (
    WorkshopRepositoryPort,
)
from workshop_enrollment_ms.features.checkout.application.use_cases.session_builder import (
    CheckoutOutcome,
    CheckoutSessionBuilder,
)
from workshop_enrollment_ms.features.enrollments.application.use_cases.admission_gate import (
    AdmissionGate,
)
from workshop_enrollment_ms.features.enrollments.domain.capacity import SOLD_OUT
from workshop_enrollment_ms.shared.domain.exceptions import (
    AdmissionDeniedError,
    EnrollmentValidationError,
    WorkshopNotFoundError,
)


@dataclass
class SingleCheckoutRequest:
    """Request to buy one admission."""

    workshop_id: int
    pricing_option: str = ""
    customer_email: str | None = None
    owner_key: str | None = None


class StartSingleCheckoutUseCase:
    """
    Validates one admission and opens a checkout session for it.

    Checks run in order: published, checkout enabled, admission (an active
    waitlist claim overrides capacity), positive price.
    """

    def __init__(
        self,
        workshops: WorkshopRepositoryPort,
        gate: AdmissionGate,
        builder: CheckoutSessionBuilder,
    ) -> None:
        self._workshops = workshops
        self._gate = gate
        self._builder = builder

    async def execute(self, request: SingleCheckoutRequest) -> CheckoutOutcome:
        workshop = await self._workshops.get_published(request.workshop_id)
        if workshop is None:
            raise WorkshopNotFoundError(request.workshop_id)

        if not workshop.checkout_enabled:
            raise EnrollmentValidationError(
                "Online checkout is not available for this workshop."
            )

        decision = await self._gate.check(workshop, request.owner_key)
        if not decision.allowed:
            raise AdmissionDeniedError(
                workshop.id, decision.reason or SOLD_OUT, waitlist=decision.waitlist
            )

        option = workshop.find_option(request.pricing_option)
        option_id = option.id if option else ""
        price = workshop.effective_price(option_id)
        if price <= 0:
            raise EnrollmentValidationError("This workshop has no valid price configured.")

        entry_id = await self._gate.claimed_entry(request.owner_key, [workshop.id])

        return await self._builder.build_single(
            workshop,
            pricing_option=option_id,
            price=price,
            customer_email=request.customer_email,
            waitlist_entry_id=entry_id,
        )
