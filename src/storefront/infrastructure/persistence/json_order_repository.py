"""JSON-file-backed implementation of OrderRepository.

Each order is stored as one record holding its header, line items and
status history, so a status change and its audit entry are written in
the same file replace.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from storefront.domain.exceptions import ConcurrentModificationError, DuplicateIdempotencyKeyError
from storefront.domain.model.order import (
    DeliveryMode,
    FulfillmentStatus,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    StatusHistoryEntry,
)
from storefront.domain.model.value_objects import Money, Quantity, ShippingAddress
from storefront.domain.repository.order_repository import OrderRepository
from storefront.infrastructure.persistence.json_store import JsonFileStore


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._store = JsonFileStore(file_path)

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        return self._find(lambda raw: raw["id"] == order_id)

    def get_by_order_number(self, order_number: str) -> Order | None:
        return self._find(lambda raw: raw["order_number"] == order_number)

    def get_by_idempotency_key(self, key: str) -> Order | None:
        return self._find(lambda raw: raw.get("idempotency_key") == key)

    def get_by_item_id(self, item_id: str) -> Order | None:
        return self._find(lambda raw: any(i["id"] == item_id for i in raw["items"]))

    def save(self, order: Order) -> None:
        with self._store.transaction() as orders:
            key = order.idempotency_key
            if key and any(
                o.get("idempotency_key") == key and o["id"] != order.id for o in orders
            ):
                raise DuplicateIdempotencyKeyError(key)
            if order.id is None:
                order.id = max((o["id"] for o in orders), default=0) + 1
                order.version = 1
                orders.append(self._to_raw(order))
                return

            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    if raw["version"] != order.version:
                        raise ConcurrentModificationError(
                            f"Order {order.order_number} was changed by someone else; reload and retry"
                        )
                    order.version += 1
                    orders[i] = self._to_raw(order)
                    return
            order.version = 1
            orders.append(self._to_raw(order))

    # --- Serialization --------------------------------------------------------

    def _find(self, predicate) -> Order | None:
        for raw in self._store.load():
            if predicate(raw):
                return self._to_domain(raw)
        return None

    @staticmethod
    def _money(value: Money) -> dict:
        return {"amount": str(value.amount), "currency": value.currency}

    @staticmethod
    def _from_money(raw: dict) -> Money:
        return Money(Decimal(raw["amount"]), raw["currency"])

    @classmethod
    def _to_raw(cls, order: Order) -> dict:
        address = order.shipping_address
        return {
            "id": order.id,
            "version": order.version,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "customer_email": order.customer_email,
            "shipping_address": {
                "full_name": address.full_name,
                "phone": address.phone,
                "address_line1": address.address_line1,
                "address_line2": address.address_line2,
                "city": address.city,
                "state": address.state,
                "postal_code": address.postal_code,
                "country": address.country,
            },
            "payment_method": order.payment_method,
            "shipping_cost": cls._money(order.shipping_cost),
            "coupon_code": order.coupon_code,
            "coupon_discount": cls._money(order.coupon_discount),
            "status": order.status.value,
            "fulfillment_status": order.fulfillment_status.value,
            "payment_status": order.payment_status.value,
            "delivery_mode": order.delivery_mode.value,
            "shipping_partner": order.shipping_partner,
            "tracking_id": order.tracking_id,
            "cancellation_reason": order.cancellation_reason,
            "idempotency_key": order.idempotency_key,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "delivered_at": order.delivered_at.isoformat() if order.delivered_at else None,
            "items": [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "variant_id": item.variant_id,
                    "product_name": item.product_name,
                    "color": item.color,
                    "size": item.size,
                    "quantity": item.quantity.value,
                    "original_price": cls._money(item.original_price),
                    "price": cls._money(item.price),
                    "offer_title": item.offer_title,
                }
                for item in order.items
            ],
            "history": [
                {
                    "old_status": entry.old_status,
                    "new_status": entry.new_status,
                    "old_fulfillment_status": entry.old_fulfillment_status,
                    "new_fulfillment_status": entry.new_fulfillment_status,
                    "old_payment_status": entry.old_payment_status,
                    "new_payment_status": entry.new_payment_status,
                    "notes": entry.notes,
                    "created_at": entry.created_at.isoformat(),
                }
                for entry in order.history
            ],
        }

    @classmethod
    def _to_domain(cls, raw: dict) -> Order:
        items = [
            OrderItem(
                id=i["id"],
                product_id=i["product_id"],
                variant_id=i.get("variant_id"),
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                original_price=cls._from_money(i["original_price"]),
                price=cls._from_money(i["price"]),
                color=i.get("color", ""),
                size=i.get("size", ""),
                offer_title=i.get("offer_title"),
            )
            for i in raw["items"]
        ]
        history = [
            StatusHistoryEntry(
                order_id=raw["id"],
                old_status=h["old_status"],
                new_status=h["new_status"],
                old_fulfillment_status=h["old_fulfillment_status"],
                new_fulfillment_status=h["new_fulfillment_status"],
                created_at=datetime.fromisoformat(h["created_at"]),
                notes=h.get("notes"),
                old_payment_status=h.get("old_payment_status"),
                new_payment_status=h.get("new_payment_status"),
            )
            for h in raw.get("history", [])
        ]
        delivered_at = raw.get("delivered_at")
        return Order(
            id=raw["id"],
            order_number=raw["order_number"],
            customer_id=raw["customer_id"],
            customer_email=raw.get("customer_email", ""),
            shipping_address=ShippingAddress(**raw["shipping_address"]),
            items=items,
            payment_method=raw["payment_method"],
            shipping_cost=cls._from_money(raw["shipping_cost"]),
            coupon_code=raw.get("coupon_code"),
            coupon_discount=cls._from_money(raw["coupon_discount"]),
            status=OrderStatus(raw["status"]),
            fulfillment_status=FulfillmentStatus(raw["fulfillment_status"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            delivery_mode=DeliveryMode(raw["delivery_mode"]),
            shipping_partner=raw.get("shipping_partner"),
            tracking_id=raw.get("tracking_id"),
            cancellation_reason=raw.get("cancellation_reason"),
            idempotency_key=raw.get("idempotency_key"),
            history=history,
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            delivered_at=datetime.fromisoformat(delivered_at) if delivered_at else None,
            version=raw["version"],
        )
