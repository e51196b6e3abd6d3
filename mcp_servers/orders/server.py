"""Orders tool provider: publishes a tool catalog and the order endpoints it describes."""

import copy
import logging
import threading
from datetime import datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OrderItem(BaseModel):
    product_name: str
    quantity: int = 1
    price: float = 0.0


class Order(BaseModel):
    id: int | None = None
    customer_name: str
    customer_email: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float = 0.0
    status: str = "PENDING"
    address: str | None = None
    order_date: datetime | None = None


TOOLS: list[dict[str, Any]] = [
    {
        "name": "get_all_orders",
        "description": "Lists all orders",
        "method": "GET",
        "endpoint": "/mcp/orders",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "get_order_by_id",
        "description": "Gets an order by its ID",
        "method": "GET",
        "endpoint": "/mcp/orders/{id}",
        "inputSchema": {
            "type": "object",
            "properties": {
                "orderId": {"type": "number", "description": "ID of the order to show"}
            },
            "required": ["orderId"],
        },
    },
    {
        "name": "cancel_order",
        "description": "Cancels an order",
        "method": "DELETE",
        "endpoint": "/mcp/orders/{id}",
        "inputSchema": {
            "type": "object",
            "properties": {
                "orderId": {"type": "number", "description": "ID of the order to cancel"}
            },
            "required": ["orderId"],
        },
    },
    {
        "name": "update_order_address",
        "description": (
            "Updates the delivery address of an order. The user may refer to saved "
            "address labels such as 'home' or 'work'."
        ),
        "method": "PATCH",
        "endpoint": "/mcp/orders/{id}/address",
        "inputSchema": {
            "type": "object",
            "properties": {
                "orderId": {
                    "type": "number",
                    "description": "ID of the order whose address changes",
                },
                "address": {
                    "type": "string",
                    "description": "New address label (e.g. 'home', 'work', 'office')",
                },
            },
            "required": ["orderId", "address"],
        },
    },
]

SEED_ORDERS: list[dict[str, Any]] = [
    {
        "id": 1,
        "customer_name": "Ayse Demir",
        "customer_email": "ayse@example.com",
        "items": [{"product_name": "Laptop", "quantity": 1, "price": 1200.0}],
        "total_amount": 1200.0,
        "status": "SHIPPED",
        "address": "home",
        "order_date": "2024-05-01T10:15:00",
    },
    {
        "id": 5,
        "customer_name": "Ayse Demir",
        "customer_email": "ayse@example.com",
        "items": [{"product_name": "Headphones", "quantity": 2, "price": 75.0}],
        "total_amount": 150.0,
        "status": "PENDING",
        "address": "work",
        "order_date": "2024-05-03T16:40:00",
    },
]


class OrderRepository:
    """In-memory order store seeded with canned data."""

    def __init__(self, seed: list[dict[str, Any]] | None = None) -> None:
        self._lock = threading.Lock()
        self._orders: dict[int, Order] = {}
        for data in copy.deepcopy(seed if seed is not None else SEED_ORDERS):
            order = Order.model_validate(data)
            self._orders[order.id] = order
        self._next_id = max(self._orders, default=0) + 1

    def list_orders(self) -> list[Order]:
        with self._lock:
            return list(self._orders.values())

    def get(self, order_id: int) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
        return order

    def create(self, order: Order) -> Order:
        with self._lock:
            created = order.model_copy(
                update={"id": self._next_id, "order_date": order.order_date or datetime.now()}
            )
            self._orders[created.id] = created
            self._next_id += 1
        return created

    def update(self, order_id: int, order: Order) -> Order:
        self.get(order_id)
        updated = order.model_copy(update={"id": order_id})
        with self._lock:
            self._orders[order_id] = updated
        return updated

    def cancel(self, order_id: int) -> Order:
        order = self.get(order_id)
        cancelled = order.model_copy(update={"status": "CANCELLED"})
        with self._lock:
            self._orders[order_id] = cancelled
        return cancelled

    def update_address(self, order_id: int, address: str) -> Order:
        order = self.get(order_id)
        updated = order.model_copy(update={"address": address})
        with self._lock:
            self._orders[order_id] = updated
        return updated


def create_app(repository: OrderRepository | None = None) -> FastAPI:
    repo = repository or OrderRepository()
    app = FastAPI(title="Orders Tool Provider", version="0.1.0")

    @app.get("/mcp/tools")
    def list_tools() -> dict[str, Any]:
        return {"tools": TOOLS}

    @app.get("/mcp/orders")
    def get_all_orders() -> list[Order]:
        logger.info("Fetching all orders")
        return repo.list_orders()

    @app.post("/mcp/orders")
    def create_order(order: Order) -> Order:
        logger.info("Creating order for customer: %s", order.customer_name)
        return repo.create(order)

    @app.get("/mcp/orders/{order_id}")
    def get_order_by_id(order_id: int) -> Order:
        logger.info("Fetching order with ID: %s", order_id)
        return repo.get(order_id)

    @app.put("/mcp/orders/{order_id}")
    def update_order(order_id: int, order: Order) -> Order:
        logger.info("Updating order with ID: %s", order_id)
        return repo.update(order_id, order)

    @app.delete("/mcp/orders/{order_id}")
    def cancel_order(order_id: int) -> dict[str, str]:
        logger.info("Cancelling order with ID: %s", order_id)
        repo.cancel(order_id)
        return {"message": f"Order {order_id} was cancelled successfully."}

    @app.patch("/mcp/orders/{order_id}/address")
    def update_order_address(order_id: int, address: str = Query(...)) -> Order:
        logger.info("Updating address for order ID: %s to: %s", order_id, address)
        return repo.update_address(order_id, address)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8081)
