"""
Module: recruitment_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models and the
    column conventions shared by every table.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  ALL model files import from here.  This module MUST NOT import
    from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Natural keys: every table is keyed by the transport's message identity
      (origin id), never by a surrogate id, so a uniqueness violation IS the
      first-writer-wins signal.
    - Timestamps are timezone-aware.
    - Transport snowflake identifiers are stored as strings; they exceed
      the range of a signed 64-bit column on some backends and are never
      used arithmetically.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase

SNOWFLAKE_LENGTH = 32


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Contract:
        Every ORM model in the kernel inherits from Base and declares its
        own (natural) primary key.

    Guarantees:
        - datetime maps to DateTime(timezone=True).
        - str maps to String(SNOWFLAKE_LENGTH) unless a column overrides it.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        str: String(SNOWFLAKE_LENGTH),
    }
