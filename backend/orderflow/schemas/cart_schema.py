from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from orderflow.errors import DifferentStoreError


class CartLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    menu_item_id: str
    store_id: str
    name: str
    unit_price: int = Field(ge=0)
    quantity: int = Field(ge=1)

    @property
    def line_amount(self) -> int:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    """
    Immutable cart value. with_line/without_item return a new Cart and enforce
    the single-store rule and line merging; the stored JSON is this model.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: str
    store_id: Optional[str] = None
    lines: Tuple[CartLine, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total_amount(self) -> int:
        return sum(line.line_amount for line in self.lines)

    def find(self, menu_item_id: str) -> Optional[CartLine]:
        return next((ln for ln in self.lines if ln.menu_item_id == menu_item_id), None)

    def with_line(self, line: CartLine) -> "Cart":
        if not self.is_empty and line.store_id != self.store_id:
            raise DifferentStoreError()

        existing = self.find(line.menu_item_id)
        if existing:
            merged = existing.model_copy(update={"quantity": existing.quantity + line.quantity})
            lines = tuple(merged if ln is existing else ln for ln in self.lines)
        else:
            lines = self.lines + (line,)
        return self.model_copy(update={"store_id": line.store_id, "lines": lines})

    def without_item(self, menu_item_id: str) -> "Cart":
        if self.find(menu_item_id) is None:
            return self
        lines = tuple(ln for ln in self.lines if ln.menu_item_id != menu_item_id)
        return self.model_copy(
            update={"lines": lines, "store_id": self.store_id if lines else None}
        )
