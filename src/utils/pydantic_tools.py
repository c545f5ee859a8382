from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseModelWithMethods(BaseModel):
    """Base model shared by upstream and wire models."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_json(self, **kwargs: Any) -> str:
        return self.model_dump_json(by_alias=True, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Dump in wire format, using the client's camelCase field names."""
        return self.model_dump(mode="json", by_alias=True)
