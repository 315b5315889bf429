# backend/models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Widget(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str


class WidgetIn(BaseModel):
    # missing or null fields decode to "", a client id is accepted but never stored
    name: str = ""
    description: str = ""
    id: Optional[str] = None

    @field_validator("name", "description", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return "" if v is None else v
