"""Declarative base shared by all models."""

from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def enum_column(enum_class, length: int = 32) -> Enum:
    """String-backed enum column that stores member values, not names."""
    return Enum(
        enum_class,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
    )
