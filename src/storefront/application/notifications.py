"""Outbound notifications: the port and the fire-and-forget dispatcher.

Handlers talk to ``NotificationDispatcher`` only. It turns order events
into customer/admin notifications and status e-mails and hands them to a
``Notifier``. A failing notifier is logged and otherwise ignored; it must
never fail the operation that triggered it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from storefront.domain.model.order import FulfillmentStatus, Order
from storefront.domain.model.returns import ReturnRequest

logger = logging.getLogger(__name__)

EMAIL_STATUSES = frozenset({FulfillmentStatus.SHIPPED, FulfillmentStatus.DELIVERED})


class Notifier(ABC):

    @abstractmethod
    def notify_customer(self, customer_id: str, title: str, message: str) -> None:
        """Queue an in-app notification for one customer."""

    @abstractmethod
    def notify_admins(self, title: str, message: str) -> None:
        """Queue an in-app notification for every administrator."""

    @abstractmethod
    def send_email(self, to: str, subject: str, body: str) -> None:
        """Hand an e-mail to the mail collaborator."""


@dataclass(frozen=True)
class StatusEmail:
    subject: str
    heading: str
    message: str


def status_email(order: Order, status: FulfillmentStatus) -> StatusEmail:
    if status is FulfillmentStatus.SHIPPED:
        if order.tracking_id:
            via = f" via {order.shipping_partner}" if order.shipping_partner else ""
            message = (
                f"Your package has been shipped{via}. "
                f"Track your order using the tracking ID: {order.tracking_id}"
            )
        else:
            message = "Your package has been shipped and is on its way to you."
        return StatusEmail("Your Order Has Been Shipped!", "Your order is on its way", message)
    if status is FulfillmentStatus.DELIVERED:
        return StatusEmail(
            "Your Order Has Been Delivered!",
            "Your order has arrived",
            "Your package has been delivered. We hope you love your purchase!",
        )
    if status is FulfillmentStatus.PACKED:
        return StatusEmail(
            "Your Order Is Being Processed",
            "Your order is being prepared",
            "We are packing your order and will let you know once it ships.",
        )
    if status is FulfillmentStatus.CANCELLED:
        return StatusEmail(
            "Your Order Has Been Cancelled",
            "Your order was cancelled",
            "Your order has been cancelled. Reach out to us if this was unexpected.",
        )
    return StatusEmail(
        f"Order Status Update: {status.value}",
        "Your order status has been updated",
        f"Your order status is now: {status.value}",
    )


class NotificationDispatcher:

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier

    def order_placed(self, order: Order) -> None:
        self._safe(
            self._notifier.notify_customer,
            order.customer_id,
            "Order Placed",
            f"Your order {order.order_number} has been placed. Total: {order.total}",
        )

    def status_changed(self, order: Order) -> None:
        self._safe(
            self._notifier.notify_customer,
            order.customer_id,
            "Order Status Updated",
            f"Your order {order.order_number} is now {order.status.value}",
        )
        if order.fulfillment_status in EMAIL_STATUSES and order.customer_email:
            email = status_email(order, order.fulfillment_status)
            self._safe(
                self._notifier.send_email,
                order.customer_email,
                f"{email.subject} - Order #{order.order_number}",
                f"{email.heading}\n\n{email.message}",
            )

    def cancelled_by_customer(self, order: Order) -> None:
        self._safe(
            self._notifier.notify_admins,
            "Order Cancelled",
            f"Order {order.order_number} has been cancelled. "
            f"Reason: {order.cancellation_reason or 'not given'}",
        )

    def payment_changed(self, order: Order) -> None:
        self._safe(
            self._notifier.notify_customer,
            order.customer_id,
            "Payment Status Updated",
            f"Payment for order {order.order_number} is now {order.payment_status.value}",
        )

    def return_submitted(self, order: Order, request: ReturnRequest) -> None:
        self._safe(
            self._notifier.notify_customer,
            request.customer_id,
            "Return Requested",
            f"We received your return request for {request.product_name} "
            f"from order {order.order_number}",
        )
        self._safe(
            self._notifier.notify_admins,
            "New Return Request",
            f"Return requested for {request.product_name} in order {order.order_number}: "
            f"{request.reason}",
        )

    def return_decided(self, order: Order, request: ReturnRequest) -> None:
        message = (
            f"Your return for {request.product_name} (order {order.order_number}) "
            f"is {request.status.value}"
        )
        if request.admin_note:
            message = f"{message}. Note: {request.admin_note}"
        self._safe(self._notifier.notify_customer, request.customer_id, "Return Updated", message)

    @staticmethod
    def _safe(send, *args) -> None:
        try:
            send(*args)
        except Exception:
            logger.exception("Notification %s failed; continuing", getattr(send, "__name__", send))
