from collections.abc import Iterable
from typing import Any, Self
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class StoreModel(BaseModel):
    id: UUID = Field(default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_row(self, exclude: set[str] | None = None) -> dict[str, Any]:
        """Convert the model to a row dictionary for the store."""
        return self.model_dump(exclude=exclude)

    @classmethod
    def list_rows(cls, rows: Iterable[dict[str, Any]]) -> list[Self]:
        """Validate a sequence of store rows into model instances."""
        return [cls.model_validate(row) for row in rows]
