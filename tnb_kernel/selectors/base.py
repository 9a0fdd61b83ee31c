"""
Module: tnb_kernel.selectors.base
Responsibility: Abstract base class for the read-only selectors that serve the
    fiscal core's collaborator shapes (tariffs, active ownership shares) from
    the relational store.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    the frozen DTOs of domain/.  MUST NOT import from engines or services.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - DTO return convention: selectors return frozen domain records, never
      ORM instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from tnb_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries and return DTOs.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
