"""Inline keyboards attached to order notifications."""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

CLAIM_PREFIX = "handle_"
HANDLED_CALLBACK = "handled"
# Telegram rejects callback_data longer than this
MAX_CALLBACK_DATA_BYTES = 64


@dataclass(frozen=True)
class ClaimRequest:
    order_id: uuid.UUID
    handler: str


def team_members() -> list:
    return list(settings.TELEGRAM_TEAM_MEMBERS)


def claim_callback_data(order_id, name: str) -> str:
    return f"{CLAIM_PREFIX}{order_id}_{name.lower()}"


def validate_team_members(members: Iterable[str]) -> None:
    """Проверяет, что кнопка каждого члена команды влезает в callback_data."""
    sample_id = uuid.UUID(int=0)
    for name in members:
        if not name:
            raise ImproperlyConfigured("TELEGRAM_TEAM_MEMBERS contains an empty name")
        if len(claim_callback_data(sample_id, name).encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
            raise ImproperlyConfigured(
                f"Team member name {name!r} is too long for Telegram callback data"
            )


def build_handler_keyboard(order_id, members: Optional[Iterable[str]] = None) -> dict:
    """Одна кнопка на каждого члена команды."""
    members = team_members() if members is None else list(members)
    return {
        "inline_keyboard": [
            [
                {
                    "text": f"👤 Handled by {name}",
                    "callback_data": claim_callback_data(order_id, name),
                }
                for name in members
            ]
        ]
    }


def build_handled_keyboard(handler: str) -> dict:
    return {
        "inline_keyboard": [
            [{"text": f"✅ Handled by {handler}", "callback_data": HANDLED_CALLBACK}]
        ]
    }


def parse_claim_data(data: str, members: Optional[Iterable[str]] = None) -> Optional[ClaimRequest]:
    """Разбирает ``handle_{order_id}_{name}``; ``None`` для чужих данных.

    The name is matched case-insensitively against the roster and returned
    in its display form.
    """
    if not data or not data.startswith(CLAIM_PREFIX):
        return None

    order_part, sep, name_part = data[len(CLAIM_PREFIX):].partition("_")
    if not sep or not name_part:
        return None

    try:
        order_id = uuid.UUID(order_part)
    except ValueError:
        return None

    members = team_members() if members is None else list(members)
    for name in members:
        if name.lower() == name_part.lower():
            return ClaimRequest(order_id=order_id, handler=name)
    return None
