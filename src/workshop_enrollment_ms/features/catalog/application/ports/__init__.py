"""Catalog application ports."""

from workshop_enrollment_ms.features.catalog.application.ports.workshop_repository_port import (
    WorkshopRepositoryPort,
)

__all__ = ["WorkshopRepositoryPort"]
