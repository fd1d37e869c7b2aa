"""Shared presentation module."""

from workshop_enrollment_ms.shared.presentation.api_response import APIResponse
from workshop_enrollment_ms.shared.presentation.exception_handlers import (
    register_exception_handlers,
)

__all__ = ["APIResponse", "register_exception_handlers"]
