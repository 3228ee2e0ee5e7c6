from ninja import Field, NinjaAPI, Schema
from django.conf import settings
from typing import List, Literal, Optional
from decimal import Decimal
import logging

from .sessions import clear_session, get_store, load_session, save_session
from .store import StoreError
from .workflow import (
    OrderingSession,
    WorkflowError,
    cancel_order,
    confirm_payment,
    is_low_stock,
    load_ingredients,
    load_orders,
    restock_ingredient,
    stock_label,
    update_ingredient_stock,
)
from .workflow.ordering import ORDER_RELATIONS

logger = logging.getLogger(__name__)

api = NinjaAPI(title="Cafe POS API")


# Schemas
class ErrorSchema(Schema):
    error: str

class TableSchema(Schema):
    id: int
    number: int
    capacity: int
    status: str

class MenuItemSchema(Schema):
    id: int
    name: str
    description: str = ""
    price: float
    price_display: str
    category: str = ""
    available: bool = True

class CartLineSchema(Schema):
    menu_item_id: int
    name: str
    price: float
    quantity: int
    subtotal: float

class CartSchema(Schema):
    table_id: Optional[int] = None
    table_number: Optional[int] = None
    active_order_id: Optional[int] = None
    items: List[CartLineSchema] = []
    total: float = 0
    total_display: str = ""

class OrderDetailSchema(Schema):
    id: int
    menu_item_id: int
    menu_item_name: Optional[str] = None
    quantity: int
    price: float
    subtotal: float

class OrderSchema(Schema):
    id: int
    table_id: Optional[int] = None
    table_number: Optional[int] = None
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    total_amount: float
    total_display: str
    items: List[OrderDetailSchema] = []
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class IngredientSchema(Schema):
    id: int
    name: str
    unit: str
    stock_quantity: float
    minimum_stock: float
    low_stock: bool
    stock_label: str

class AddToCartSchema(Schema):
    menu_item_id: int

class UpdateQuantitySchema(Schema):
    delta: int

class PaymentMethodSchema(Schema):
    method: Literal['cash', 'card', 'mobile_banking']

class StockUpdateSchema(Schema):
    stock_quantity: Decimal = Field(..., max_digits=12, decimal_places=3)

class SuccessSchema(Schema):
    success: bool


@api.exception_handler(WorkflowError)
def workflow_failed(request, exc):
    return api.create_response(
        request,
        {
            "error": exc.message,
            "partial": exc.is_partial,
            "steps": exc.sequence.as_dict() if exc.sequence else None,
        },
        status=500,
    )

@api.exception_handler(StoreError)
def store_failed(request, exc):
    logger.error("Store call failed: %s", exc)
    return api.create_response(request, {"error": "Backend store unavailable"}, status=500)


# Payload helpers
def money(amount):
    return f"{settings.CURRENCY_SYMBOL}{Decimal(amount):.2f}"

def table_payload(table):
    return {
        "id": table["id"],
        "number": table["number"],
        "capacity": table["capacity"],
        "status": table["status"],
    }

def menu_item_payload(item):
    return {
        "id": item["id"],
        "name": item["name"],
        "description": item["description"],
        "price": float(item["price"]),
        "price_display": money(item["price"]),
        "category": item["category"],
        "available": item["available"],
    }

def order_payload(order):
    table = order.get("table")
    return {
        "id": order["id"],
        "table_id": order["table_id"],
        "table_number": table["number"] if table else None,
        "status": order["status"],
        "payment_status": order["payment_status"],
        "payment_method": order["payment_method"],
        "total_amount": float(order["total_amount"]),
        "total_display": money(order["total_amount"]),
        "items": [
            {
                "id": detail["id"],
                "menu_item_id": detail["menu_item_id"],
                "menu_item_name": detail["menu_item"]["name"] if detail.get("menu_item") else None,
                "quantity": detail["quantity"],
                "price": float(detail["price"]),
                "subtotal": float(detail["subtotal"]),
            }
            for detail in order.get("order_details", [])
        ],
        "created_at": order["created_at"].isoformat() if order.get("created_at") else None,
        "updated_at": order["updated_at"].isoformat() if order.get("updated_at") else None,
    }

def cart_payload(session):
    total = session.cart_total()
    return {
        "table_id": session.table["id"] if session.table else None,
        "table_number": session.table["number"] if session.table else None,
        "active_order_id": session.active_order_id,
        "items": [
            {
                "menu_item_id": line.menu_item_id,
                "name": line.name,
                "price": float(line.price),
                "quantity": line.quantity,
                "subtotal": float(line.subtotal),
            }
            for line in session.cart.values()
        ],
        "total": float(total),
        "total_display": money(total),
    }

def ingredient_payload(ingredient):
    return {
        "id": ingredient["id"],
        "name": ingredient["name"],
        "unit": ingredient["unit"],
        "stock_quantity": float(ingredient["stock_quantity"]),
        "minimum_stock": float(ingredient["minimum_stock"]),
        "low_stock": is_low_stock(ingredient),
        "stock_label": stock_label(ingredient),
    }

def _no_session(table_id):
    return 404, {"error": f"No ordering session for table {table_id}"}

def _not_pending():
    return 409, {"error": "Order is not pending"}


# Ordering endpoints
@api.get("/tables", response=List[TableSchema])
def list_tables(request):
    return [table_payload(table) for table in OrderingSession(get_store()).load_tables()]

@api.get("/menu", response=List[MenuItemSchema])
def list_menu_items(request):
    return [menu_item_payload(item) for item in OrderingSession(get_store()).load_menu()]

@api.post("/tables/{table_id}/session", response={200: CartSchema, 404: ErrorSchema, 409: ErrorSchema})
def select_table(request, table_id: int):
    store = get_store()
    table = store.select_one("tables", {"id": table_id})
    if table is None:
        return 404, {"error": "Table not found"}

    session = OrderingSession(store)
    if not session.select_table(table):
        return 409, {"error": f"Table {table['number']} is not free"}

    save_session(table_id, session)
    return cart_payload(session)

@api.delete("/tables/{table_id}/session", response=SuccessSchema)
def start_new_order(request, table_id: int):
    clear_session(table_id)
    return {"success": True}

@api.get("/tables/{table_id}/cart", response={200: CartSchema, 404: ErrorSchema})
def get_cart(request, table_id: int):
    session = load_session(table_id)
    if session is None:
        return _no_session(table_id)
    return cart_payload(session)

@api.post("/tables/{table_id}/cart/items", response={200: CartSchema, 404: ErrorSchema})
def add_to_cart(request, table_id: int, data: AddToCartSchema):
    session = load_session(table_id)
    if session is None:
        return _no_session(table_id)

    item = session.store.select_one("menu_items", {"id": data.menu_item_id, "available": True})
    if item is None:
        return 404, {"error": "Menu item not available"}

    session.add_to_cart(item)
    save_session(table_id, session)
    return cart_payload(session)

@api.patch("/tables/{table_id}/cart/items/{menu_item_id}", response={200: CartSchema, 404: ErrorSchema})
def update_cart_quantity(request, table_id: int, menu_item_id: int, data: UpdateQuantitySchema):
    session = load_session(table_id)
    if session is None:
        return _no_session(table_id)

    session.update_quantity(menu_item_id, data.delta)
    save_session(table_id, session)
    return cart_payload(session)

@api.delete("/tables/{table_id}/cart/items/{menu_item_id}", response={200: CartSchema, 404: ErrorSchema})
def remove_from_cart(request, table_id: int, menu_item_id: int):
    session = load_session(table_id)
    if session is None:
        return _no_session(table_id)

    session.remove_from_cart(menu_item_id)
    save_session(table_id, session)
    return cart_payload(session)

@api.post("/tables/{table_id}/orders", response={200: OrderSchema, 400: ErrorSchema, 404: ErrorSchema})
def place_order(request, table_id: int):
    session = load_session(table_id)
    if session is None:
        return _no_session(table_id)

    order = session.place_order()
    if order is None:
        return 400, {"error": "Cart is empty"}

    save_session(table_id, session)
    return order_payload(order)

@api.post("/tables/{table_id}/payment-method", response={200: OrderSchema, 400: ErrorSchema, 404: ErrorSchema})
def select_payment_method(request, table_id: int, data: PaymentMethodSchema):
    session = load_session(table_id)
    if session is None:
        return _no_session(table_id)
    if session.placed_order is None:
        return 400, {"error": "No order has been placed yet"}

    session.select_payment_method(data.method)
    save_session(table_id, session)
    return order_payload(session.placed_order)


# Admin endpoints
@api.get("/admin/orders", response=List[OrderSchema])
def list_orders(request, status: Optional[str] = None):
    try:
        orders = load_orders(get_store(), status=status)
    except StoreError as exc:
        logger.exception("Error loading orders")
        raise WorkflowError("Failed to load orders") from exc
    return [order_payload(order) for order in orders]

@api.post("/admin/orders/{order_id}/confirm-payment", response={200: OrderSchema, 404: ErrorSchema, 409: ErrorSchema})
def confirm_order_payment(request, order_id: int):
    store = get_store()
    order = store.select_one("orders", {"id": order_id})
    if order is None:
        return 404, {"error": "Order not found"}
    if order["status"] != "pending":
        return _not_pending()

    confirm_payment(store, order_id, order["table_id"])
    return order_payload(store.select_one("orders", {"id": order_id}, related=ORDER_RELATIONS))

@api.post("/admin/orders/{order_id}/cancel", response={200: OrderSchema, 404: ErrorSchema, 409: ErrorSchema})
def cancel_pending_order(request, order_id: int):
    store = get_store()
    order = store.select_one("orders", {"id": order_id})
    if order is None:
        return 404, {"error": "Order not found"}
    if order["status"] != "pending":
        return _not_pending()

    cancel_order(store, order_id, order["table_id"])
    return order_payload(store.select_one("orders", {"id": order_id}, related=ORDER_RELATIONS))

@api.get("/admin/ingredients", response=List[IngredientSchema])
def list_ingredients(request):
    try:
        ingredients = load_ingredients(get_store())
    except StoreError as exc:
        logger.exception("Error loading ingredients")
        raise WorkflowError("Failed to load ingredients") from exc
    return [ingredient_payload(ingredient) for ingredient in ingredients]

@api.put("/admin/ingredients/{ingredient_id}/stock", response={200: IngredientSchema, 404: ErrorSchema})
def set_ingredient_stock(request, ingredient_id: int, data: StockUpdateSchema):
    store = get_store()
    if store.select_one("ingredients", {"id": ingredient_id}) is None:
        return 404, {"error": "Ingredient not found"}

    return ingredient_payload(update_ingredient_stock(store, ingredient_id, data.stock_quantity))

@api.post("/admin/ingredients/{ingredient_id}/restock", response={200: IngredientSchema, 404: ErrorSchema})
def restock(request, ingredient_id: int):
    store = get_store()
    if store.select_one("ingredients", {"id": ingredient_id}) is None:
        return 404, {"error": "Ingredient not found"}

    return ingredient_payload(restock_ingredient(store, ingredient_id))

@api.get("/ping")
def ping(request):
    return {"ping": "pong"}
