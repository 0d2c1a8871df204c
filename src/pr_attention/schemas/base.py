"""Base schema class for reading ORM rows."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class SchemaBase(BaseModel):
    """Base class for read schemas built from SQLAlchemy models."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
    )

    @classmethod
    def from_orm_list(cls, objs: list[Any]) -> list[Self]:
        """Validate a list of SQLAlchemy model instances."""
        return [cls.model_validate(obj) for obj in objs]
