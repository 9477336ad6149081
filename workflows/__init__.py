"""Business rules for verification, certification, money movement and visits.

Route handlers stay thin: they parse the request, call into this package and
commit. Every rule violation surfaces as a ``WorkflowError`` subclass.
"""
from workflows.errors import (
    WorkflowError,
    ValidationError,
    NotFoundError,
    InvalidTransitionError,
)

__all__ = [
    "WorkflowError",
    "ValidationError",
    "NotFoundError",
    "InvalidTransitionError",
]
