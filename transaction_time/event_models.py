from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict
import uuid, time

TIMESTAMP_FIELD = "@timestamp"
TAGS_FIELD = "tags"


class Event(BaseModel):
    """Generic pipeline event addressed by field name."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float | datetime = Field(default_factory=lambda: time.time())
    tags: list[str] = Field(default_factory=list)
    data: Dict[str, Any] = Field(default_factory=dict)

    def get(self, name: str) -> Any:
        """
        Read a field by name.

        `@timestamp` and `tags` map to the model attributes. Other names are
        looked up in `data`, first as an exact key and then as a dotted path
        into nested mappings.
        """
        if name == TIMESTAMP_FIELD:
            return self.timestamp
        if name == TAGS_FIELD:
            return self.tags
        if name in self.data:
            return self.data[name]

        value: Any = self.data
        for part in name.split("."):
            if not isinstance(value, dict):
                return None
            value = value.get(part)
        return value

    def set(self, name: str, value: Any):
        if name == TIMESTAMP_FIELD:
            self.timestamp = value
        elif name == TAGS_FIELD:
            self.tags = list(value)
        else:
            self.data[name] = value

    def tag(self, name: str):
        if name not in self.tags:
            self.tags.append(name)

    def has_tag(self, name: str) -> bool:
        return name in self.tags
