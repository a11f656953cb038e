"""JSON-file-backed implementation of CouponRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from storefront.domain.exceptions import (
    CouponRejection,
    EntityNotFoundError,
    InvalidCouponError,
)
from storefront.domain.model.discount import Coupon, DiscountType, normalize_code
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.coupon_repository import CouponRepository
from storefront.infrastructure.persistence.json_store import JsonFileStore


class JsonCouponRepository(CouponRepository):

    def __init__(self, file_path: Path) -> None:
        self._store = JsonFileStore(file_path)

    # --- CouponRepository interface -------------------------------------------

    def get_by_code(self, code: str) -> Coupon | None:
        code = normalize_code(code)
        for raw in self._store.load():
            if raw["code"] == code:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Coupon]:
        return [self._to_domain(raw) for raw in self._store.load()]

    def save(self, coupon: Coupon) -> None:
        with self._store.transaction() as records:
            for i, raw in enumerate(records):
                if raw["code"] == coupon.code:
                    updated = self._to_raw(coupon)
                    updated["used_count"] = raw.get("used_count", 0)
                    records[i] = updated
                    return
            records.append(self._to_raw(coupon))

    def claim_usage(self, code: str, now: datetime) -> Coupon:
        code = normalize_code(code)
        with self._store.transaction() as records:
            for raw in records:
                if raw["code"] == code:
                    coupon = self._to_domain(raw)
                    reason = coupon.usability(now)
                    if reason is not None:
                        raise InvalidCouponError(code, reason)
                    coupon.used_count += 1
                    raw["used_count"] = coupon.used_count
                    return coupon
            raise InvalidCouponError(code, CouponRejection.UNKNOWN_CODE)

    def restore_usage(self, code: str) -> None:
        code = normalize_code(code)
        with self._store.transaction() as records:
            for raw in records:
                if raw["code"] == code:
                    raw["used_count"] = max(raw.get("used_count", 0) - 1, 0)
                    return
            raise EntityNotFoundError(f"Coupon '{code}' not found")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(coupon: Coupon) -> dict:
        return {
            "id": coupon.id,
            "code": coupon.code,
            "description": coupon.description,
            "discount_type": coupon.discount_type.value,
            "discount_value": str(coupon.discount_value),
            "min_order_value": str(coupon.min_order_value.amount) if coupon.min_order_value else None,
            "max_discount": str(coupon.max_discount.amount) if coupon.max_discount else None,
            "usage_limit": coupon.usage_limit,
            "used_count": coupon.used_count,
            "start_date": coupon.start_date.isoformat(),
            "end_date": coupon.end_date.isoformat(),
            "is_active": coupon.is_active,
        }

    @staticmethod
    def _to_domain(raw: dict) -> Coupon:
        min_order = raw.get("min_order_value")
        max_discount = raw.get("max_discount")
        return Coupon(
            id=raw["id"],
            code=raw["code"],
            description=raw.get("description", ""),
            discount_type=DiscountType(raw["discount_type"]),
            discount_value=Decimal(raw["discount_value"]),
            min_order_value=Money.of(min_order) if min_order is not None else None,
            max_discount=Money.of(max_discount) if max_discount is not None else None,
            usage_limit=raw.get("usage_limit"),
            used_count=raw.get("used_count", 0),
            start_date=datetime.fromisoformat(raw["start_date"]),
            end_date=datetime.fromisoformat(raw["end_date"]),
            is_active=raw.get("is_active", True),
        )
