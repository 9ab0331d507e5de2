"""Base models shared by all stored entities."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.utils.identifiers import generate_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_record_id(value: Any) -> Any:
    """Accept native MongoDB ObjectIds as string ids."""
    if isinstance(value, ObjectId):
        return str(value)
    return value


RecordId = Annotated[str, BeforeValidator(coerce_record_id)]


class CamelModel(BaseModel):
    """Model stored with camelCase keys (``zipCode``, ``isActive``, ...)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


class BaseEntity(CamelModel):
    """Stored record with an ``_id`` and timestamps."""

    id: RecordId = Field(default_factory=generate_id, alias="_id")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the collection store (JSON types, camelCase keys)."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
