from __future__ import annotations

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def _not_blank(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("must not be blank")
    return cleaned


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class CamelModel(BaseModel):
    """Snake-case attributes in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ItemRegister(CamelModel):
    name: NonBlankStr
    category: NonBlankStr
    description: NonBlankStr
    registered_by: NonBlankStr
    is_consumable: bool = False
    stock: Optional[int] = Field(default=None, ge=0)
    qr_code: Optional[NonBlankStr] = None
    notes: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Cordless drill",
                "category": "Power tools",
                "description": "18V drill with two batteries",
                "registeredBy": "Luis",
                "isConsumable": False,
            }
        },
    )

    @model_validator(mode="after")
    def validate_stock(self) -> "ItemRegister":
        if not self.is_consumable and self.stock not in (None, 1):
            raise ValueError("unique items always have a stock of 1")
        return self


class ItemAction(CamelModel):
    """Body shared by return and repair requests."""

    qr_code: NonBlankStr
    person: NonBlankStr
    validated_by: Optional[str] = None
    notes: Optional[str] = None


class BorrowRequest(ItemAction):
    quantity: int = Field(default=1, ge=1)


class ItemOut(CamelModel):
    id: int
    qr_code: str
    name: str
    category: str
    description: str
    status: str
    current_holder: Optional[str] = None
    loan_date: Optional[str] = None
    registered_by: str
    is_consumable: bool
    stock: int
    created_at: str


class HistoryEntryOut(CamelModel):
    id: int
    item_id: int
    item_code: Optional[str] = None
    item_name: Optional[str] = None
    action: str
    person: str
    validated_by: str
    quantity: int
    notes: str
    created_at: str
