"""Enrollment repository for database operations."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from workshop_enrollment_ms.features.enrollments.application.ports import (
    EnrollmentRepositoryPort,
)
from workshop_enrollment_ms.features.enrollments.domain.entities import Enrollment
from workshop_enrollment_ms.features.enrollments.domain.enums import EnrollmentStatus
from workshop_enrollment_ms.shared.domain.exceptions import DuplicateEnrollmentError
from workshop_enrollment_ms.shared.infrastructure.database.models import EnrollmentModel


class EnrollmentRepository(EnrollmentRepositoryPort):
    """
    Enrollment repository using async SQLAlchemy.

    Writes are flushed, not committed; the request session commits once the
    whole reconciliation succeeded.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, enrollment: Enrollment) -> Enrollment:
        """
        Insert a new enrollment.

        Args:
            enrollment: Enrollment domain entity to persist

        Returns:
            The persisted enrollment entity

        Raises:
            DuplicateEnrollmentError: another enrollment already exists for
                the same checkout session and workshop. The session must be
                rolled back before it is used again.
        """
        self._session.add(EnrollmentModel.from_domain(enrollment))
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise DuplicateEnrollmentError(enrollment.session_id, enrollment.workshop_id) from e
        return enrollment

    async def save(self, enrollment: Enrollment) -> Enrollment:
        model = await self._session.get(EnrollmentModel, enrollment.id)
        if model is None:
            return await self.add(enrollment)
        model.apply(enrollment)
        await self._session.flush()
        return enrollment

    async def get_by_id(self, enrollment_id: UUID) -> Enrollment | None:
        model = await self._session.get(EnrollmentModel, enrollment_id)
        return model.to_domain() if model else None

    async def get_by_session_id(
        self, session_id: str, workshop_id: int | None = None
    ) -> Enrollment | None:
        """
        Get the enrollment created for a checkout session.

        Args:
            session_id: Processor checkout session id
            workshop_id: Narrow to one cart line when the session paid for several

        Returns:
            Enrollment if found, None otherwise
        """
        query = select(EnrollmentModel).where(EnrollmentModel.session_id == session_id)
        if workshop_id is not None:
            query = query.where(EnrollmentModel.workshop_id == workshop_id)
        result = await self._session.execute(
            query.order_by(EnrollmentModel.created_at).limit(1)
        )
        model = result.scalar_one_or_none()
        return model.to_domain() if model else None

    async def list_by_payment_reference(self, payment_reference: str) -> list[Enrollment]:
        result = await self._session.execute(
            select(EnrollmentModel)
            .where(EnrollmentModel.payment_reference == payment_reference)
            .order_by(EnrollmentModel.created_at)
        )
        return [m.to_domain() for m in result.scalars().all()]

    async def list_by_workshop(
        self, workshop_id: int, status: EnrollmentStatus | None = None
    ) -> list[Enrollment]:
        query = select(EnrollmentModel).where(EnrollmentModel.workshop_id == workshop_id)
        if status:
            query = query.where(EnrollmentModel.status == status.value)

        result = await self._session.execute(query.order_by(EnrollmentModel.created_at.desc()))
        return [m.to_domain() for m in result.scalars().all()]

    async def count_completed(self, workshop_id: int) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(EnrollmentModel)
            .where(
                EnrollmentModel.workshop_id == workshop_id,
                EnrollmentModel.status == EnrollmentStatus.COMPLETED.value,
            )
        )
        return int(result.scalar_one())
