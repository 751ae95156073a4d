from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from orderflow.models.menu_item import MenuItem


class MenuItemQuote(BaseModel):
    """Server-side price and availability of one menu item at lookup time."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    menu_item_id: str
    store_id: Optional[str] = None
    name: str
    unit_price: int
    available: bool


class PricingLookup(Protocol):
    def find_menu_item(self, menu_item_id: str) -> Optional[MenuItemQuote]:
        ...


class MenuRepository:
    """PricingLookup backed by the menu_items table."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, menu_item_id: str) -> Optional[MenuItem]:
        return self.db.get(MenuItem, menu_item_id)

    def find_menu_item(self, menu_item_id: str) -> Optional[MenuItemQuote]:
        item = self.get(menu_item_id)
        if item is None:
            return None
        return MenuItemQuote(
            menu_item_id=item.id,
            store_id=item.store_id,
            name=item.name,
            unit_price=item.price,
            available=bool(item.available),
        )
