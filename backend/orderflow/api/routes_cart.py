from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from orderflow.api.deps import get_cart_store, get_customer_id
from orderflow.db import get_db
from orderflow.errors import (
    InvalidQuantityError,
    MenuItemNotFoundError,
    MenuItemUnavailableError,
)
from orderflow.repositories.menu_repo import MenuRepository
from orderflow.schemas.cart_schema import Cart, CartLine
from orderflow.services.cart_service import CartStore

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddItemIn(BaseModel):
    menu_item_id: str
    quantity: int


def _cart_to_dict(cart: Cart):
    return {
        "customer_id": cart.customer_id,
        "store_id": cart.store_id,
        "items": [
            {
                "menu_item_id": ln.menu_item_id,
                "name": ln.name,
                "unit_price": ln.unit_price,
                "quantity": ln.quantity,
                "line_amount": ln.line_amount,
            }
            for ln in cart.lines
        ],
        "total_amount": cart.total_amount,
    }


@router.get("", summary="Get cart")
def get_cart(
    customer_id: str = Depends(get_customer_id),
    store: CartStore = Depends(get_cart_store),
):
    return _cart_to_dict(store.get_cart(customer_id))


@router.post("/items", summary="Add item to cart")
def add_item(
    payload: AddItemIn,
    customer_id: str = Depends(get_customer_id),
    store: CartStore = Depends(get_cart_store),
    db: Session = Depends(get_db),
):
    if payload.quantity < 1:
        raise InvalidQuantityError()
    # name/price snapshot comes from the menu, never from the client
    quote = MenuRepository(db).find_menu_item(payload.menu_item_id)
    if quote is None:
        raise MenuItemNotFoundError(f"Menu item not found: {payload.menu_item_id}")
    if not quote.available:
        raise MenuItemUnavailableError(f"Menu item unavailable: {payload.menu_item_id}")
    line = CartLine(
        menu_item_id=quote.menu_item_id,
        store_id=quote.store_id,
        name=quote.name,
        unit_price=quote.unit_price,
        quantity=payload.quantity,
    )
    return _cart_to_dict(store.add_item(customer_id, line))


@router.delete("/items/{menu_item_id}", summary="Remove item")
def remove_item(
    menu_item_id: str,
    customer_id: str = Depends(get_customer_id),
    store: CartStore = Depends(get_cart_store),
):
    return _cart_to_dict(store.remove_item(customer_id, menu_item_id))


@router.delete("", summary="Clear cart")
def clear_cart(
    customer_id: str = Depends(get_customer_id),
    store: CartStore = Depends(get_cart_store),
):
    store.clear(customer_id)
    return {"ok": True}
