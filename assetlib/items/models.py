"""Item records: the asset library's central data model."""
from __future__ import annotations

from typing import List
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from assetlib.common.timestamps import is_rfc3339, now_rfc3339

MAX_USING_RATE = 2**63 - 1


class Storage(BaseModel):
    """Physical location of an item, recorded once per supported platform."""

    id: str = ""
    windows: str = ""
    linux: str = ""
    macos: str = ""


class Attribute(BaseModel):
    key: str
    value: str = ""


class Item(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    author: str = ""
    tags: List[str] = Field(default_factory=list)
    description: str = ""
    thumb_img: str = ""
    thumb_mov: str = ""
    input_path: str = ""
    output_path: str = ""
    item_type: str
    status: str = ""
    log: str = ""
    create_time: str = Field(default_factory=now_rfc3339)
    update_time: str = Field(default_factory=now_rfc3339)
    using_rate: int = Field(default=0, ge=0, le=MAX_USING_RATE)
    storage: Storage = Field(default_factory=Storage)
    attributes: List[Attribute] = Field(default_factory=list)

    @field_validator("create_time", "update_time")
    @classmethod
    def _rfc3339(cls, v: str) -> str:
        if not is_rfc3339(v):
            raise ValueError(f"timestamp must be RFC 3339 with a numeric UTC offset, got: {v!r}")
        return v

    @field_validator("item_type")
    @classmethod
    def _item_type_required(cls, v: str) -> str:
        if not v:
            raise ValueError("item_type is required")
        return v

    def attribute_values(self, key: str) -> List[str]:
        return [attr.value for attr in self.attributes if attr.key == key]

    def touch(self) -> None:
        self.update_time = now_rfc3339()
