"""Cart application ports."""

from workshop_enrollment_ms.features.cart.application.ports.cart_storage_port import (
    CartStoragePort,
)

__all__ = ["CartStoragePort"]
