"""Рендеринг сообщения о заказе для операционного чата.

The text is built for ``parse_mode=HTML``: markup is added here and every
value coming from the order is escaped.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, List, Optional

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

SEPARATOR = "━━━━━━━━━━━━━━━━━━━━━━━━━"
CURRENCY = "AED"
CENTS = Decimal("0.01")

PAYMENT_METHOD_LABELS = {
    "cash_on_delivery": "Cash on Delivery",
}


@dataclass(frozen=True)
class FinancialBreakdown:
    total_amount: Decimal
    delivery_fee: Decimal
    commission_rate: Decimal
    amount_after_delivery_fee: Decimal
    commission: Decimal
    store_payout: Decimal


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _money(value) -> str:
    return f"{_round(Decimal(str(value)))}"


def _plain_number(value: Decimal) -> str:
    return f"{value.normalize():f}"


def calculate_financial_breakdown(total_amount) -> FinancialBreakdown:
    """Доставка вычитается из суммы, затем берётся комиссия маркетплейса."""
    total = Decimal(str(total_amount))
    delivery_fee = Decimal(str(settings.ORDER_DELIVERY_FEE))
    rate = Decimal(str(settings.ORDER_COMMISSION_RATE))

    after_fee = _round(total - delivery_fee)
    commission = _round(after_fee * rate)
    payout = _round(after_fee - commission)

    return FinancialBreakdown(
        total_amount=_round(total),
        delivery_fee=delivery_fee,
        commission_rate=rate,
        amount_after_delivery_fee=after_fee,
        commission=commission,
        store_payout=payout,
    )


def group_items_by_store(items: Iterable) -> Dict[str, List]:
    """Group order lines by store name, keeping first-appearance order."""
    groups: Dict[str, List] = {}
    for item in items:
        groups.setdefault(item.store_name, []).append(item)
    return groups


def _unique_stores(items: Iterable) -> Dict[object, str]:
    stores: Dict[object, str] = {}
    for item in items:
        if item.store_id and item.store_id not in stores:
            stores[item.store_id] = item.store_name
    return stores


def format_payment_method(code: Optional[str]) -> str:
    return PAYMENT_METHOD_LABELS.get(code, code or "")


def format_order_date(value) -> str:
    """Like ``Jan 5, 2025, 03:07 PM`` in the project time zone."""
    if timezone.is_naive(value):
        value = timezone.make_aware(value, timezone.get_default_timezone())
    local = timezone.localtime(value, timezone.get_default_timezone())
    return f"{local:%b} {local.day}, {local.year}, {local:%I:%M %p}"


def default_pickup_lookup(store_id):
    from somah_market.stores.models import StoreLocation

    return StoreLocation.objects.filter(store_id=store_id).first()


def _render_pickup_location(location) -> List[str]:
    location_type = location.location_type or ""
    lines = [
        f"📍 {html.escape(location_type[:1].upper() + location_type[1:])}",
        f"🏠 {html.escape(location.street_number)} {html.escape(location.street_name)}",
        f"📍 {html.escape(location.place_name)}",
    ]
    if location.additional_info:
        lines.append(f"📝 {html.escape(location.additional_info)}")
    return lines


def _render_pickup_fallback() -> List[str]:
    return [
        "📍 Store Location: Contact store owner for pickup details",
        "📞 Store Contact: Available in store management",
    ]


def _render_pickup_section(
    items: List, pickup_lookup: Callable
) -> List[str]:
    lines = ["🏪 <b>STORE PICKUP DETAILS:</b>"]
    for store_id, store_name in _unique_stores(items).items():
        lines.append(f"<b>{html.escape(store_name)}:</b>")
        try:
            location = pickup_lookup(store_id)
        except Exception as exc:  # noqa: BLE001 - один магазин не ломает сообщение
            logger.warning("Pickup location lookup failed for store %s: %s", store_id, exc)
            location = None

        if location is not None and location.location_type:
            lines.extend(_render_pickup_location(location))
        else:
            lines.extend(_render_pickup_fallback())
        lines.append("")
    return lines


def format_order_message(
    order,
    handled_by: Optional[str] = None,
    pickup_lookup: Optional[Callable] = None,
) -> str:
    """Формирует текст уведомления о заказе.

    ``handled_by`` adds the footer naming the team member who claimed the
    order. ``pickup_lookup`` maps a store id to its pickup location (or
    ``None``) and defaults to a database lookup.
    """
    pickup_lookup = pickup_lookup or default_pickup_lookup
    items = list(order.items.all())
    breakdown = calculate_financial_breakdown(order.total_amount)
    rate_percent = _plain_number(breakdown.commission_rate * 100)

    address = html.escape(order.address_line1)
    if order.address_line2:
        address += f", {html.escape(order.address_line2)}"

    lines = [
        f"🛍️ <b>NEW ORDER #{html.escape(order.order_number)}</b>",
        SEPARATOR,
        "",
        "👤 <b>CUSTOMER DETAILS:</b>",
        f"Name: {html.escape(order.full_name)}",
        f"Phone: {html.escape(order.phone)}",
        f"Address: {address}",
        f"{html.escape(order.city)}, {html.escape(order.emirate)}",
        "",
        "📦 <b>ORDER DETAILS:</b>",
    ]

    for store_name, store_items in group_items_by_store(items).items():
        lines.append(f"<b>Store: {html.escape(store_name)}</b>")
        for item in store_items:
            lines.append(
                f"- {item.quantity}x {html.escape(item.product_name)} "
                f"({CURRENCY} {_money(item.price)})"
            )
        lines.append("")

    lines.extend(
        [
            "💰 <b>FINANCIAL BREAKDOWN:</b>",
            f"Total Amount: {CURRENCY} {breakdown.total_amount} "
            f"(includes {_plain_number(breakdown.delivery_fee)} {CURRENCY} delivery fee)",
            f"After Delivery Fee: {CURRENCY} {breakdown.amount_after_delivery_fee}",
            f"{rate_percent}% Commission: {CURRENCY} {breakdown.commission} (Somah)",
            f"Store Payout: {CURRENCY} {breakdown.store_payout}",
            "",
        ]
    )

    lines.extend(_render_pickup_section(items, pickup_lookup))

    lines.append(f"📅 <b>Order Date:</b> {format_order_date(order.created_at)}")
    lines.append(
        f"💳 <b>Payment:</b> {html.escape(format_payment_method(order.payment_method))}"
    )
    if order.notes:
        lines.append(f"📝 <b>Notes:</b> {html.escape(order.notes)}")

    if handled_by:
        lines.append("")
        lines.append(f"✅ <b>Handled by: {html.escape(handled_by)}</b>")

    lines.append("")
    lines.append(SEPARATOR)
    return "\n".join(lines)
