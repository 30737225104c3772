from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from boba_pos.core.options import Customization
from boba_pos.services.catalog import QuoteLine


class MenuItemBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    base_price: float = Field(..., alias="basePrice", ge=0, allow_inf_nan=False)
    image_ref: Optional[str] = Field(None, alias="imageRef")
    category: str
    calories: float = Field(0, ge=0)
    sugar_grams: float = Field(0, alias="sugar", ge=0)
    protein_grams: float = Field(0, alias="protein", ge=0)
    active: bool = True


class MenuItemCreate(MenuItemBase):
    pass


class MenuItemUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, alias="basePrice", ge=0, allow_inf_nan=False)
    image_ref: Optional[str] = Field(None, alias="imageRef")
    category: Optional[str] = None
    calories: Optional[float] = Field(None, ge=0)
    sugar_grams: Optional[float] = Field(None, alias="sugar", ge=0)
    protein_grams: Optional[float] = Field(None, alias="protein", ge=0)
    active: Optional[bool] = None


class QuoteItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    menu_item_id: int = Field(..., alias="menuItemId")
    quantity: int = Field(1, ge=1)
    size: str = "medium"
    sugar_level: str = Field("normal", alias="sugarLevel")
    ice_level: str = Field("regular", alias="iceLevel")
    toppings: List[str] = Field(default_factory=list)

    def to_line(self) -> QuoteLine:
        customization = Customization(
            size=self.size,
            sugar_level=self.sugar_level,
            ice_level=self.ice_level,
            toppings=tuple(self.toppings),
        ).validated()
        return QuoteLine(menu_item_id=self.menu_item_id, quantity=self.quantity, customization=customization)


class QuoteRequest(BaseModel):
    items: List[QuoteItem] = Field(..., min_length=1)
