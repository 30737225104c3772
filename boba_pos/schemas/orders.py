from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from boba_pos.services.orders import OrderLineRequest


class OrderItemCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    menu_item_id: int = Field(..., alias="menuItemId", strict=True)
    item_name: str = Field(..., alias="itemName", min_length=1)
    quantity: int = Field(..., ge=1, strict=True)
    size: str
    sugar_level: str = Field(..., alias="sugarLevel")
    ice_level: str = Field("regular", alias="iceLevel")
    toppings: List[str] = Field(default_factory=list)
    price: float = Field(..., ge=0, allow_inf_nan=False)

    def to_line(self) -> OrderLineRequest:
        return OrderLineRequest(
            menu_item_id=self.menu_item_id,
            item_name=self.item_name,
            quantity=self.quantity,
            size=self.size,
            sugar_level=self.sugar_level,
            ice_level=self.ice_level,
            toppings=list(self.toppings),
            price=self.price,
        )


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[OrderItemCreate]
    # strict: a numeric string is not a price
    total_price: float = Field(..., alias="totalPrice", strict=True, allow_inf_nan=False)


class StatusUpdate(BaseModel):
    status: str
