import json
import uuid
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.core.exceptions import ImproperlyConfigured
from telegram.ext import CallbackQueryHandler, MessageHandler

from somah_market.orders.models import Order, OrderItem
from somah_market.telegram_bot import handlers
from somah_market.telegram_bot.channel import GREETING, get_operations_chat_id
from somah_market.telegram_bot.keyboards import (
    MAX_CALLBACK_DATA_BYTES,
    build_handled_keyboard,
    build_handler_keyboard,
    parse_claim_data,
    validate_team_members,
)
from somah_market.telegram_bot.main import setup_application
from somah_market.telegram_bot.utils import fit_message_length

CHAT_ID = -100123
MESSAGE_ID = 42


@pytest.fixture(autouse=True)
def telegram_test_settings(settings):
    cache.clear()
    settings.TELEGRAM_OPERATIONS_CHAT_ID = ""
    settings.TELEGRAM_TEAM_MEMBERS = ["Khaled", "Hamad", "Malil"]
    settings.WEBHOOK_SECRET = "test-webhook-secret"
    yield
    cache.clear()


@pytest.fixture
def telegram_stubs(monkeypatch):
    calls = {"answers": [], "edits": [], "sent": []}

    def fake_answer(callback_query_id, text=None, show_alert=False):
        calls["answers"].append({"id": callback_query_id, "text": text, "alert": show_alert})
        return {"ok": True}

    def fake_edit(chat_id, message_id, text, reply_markup=None):
        calls["edits"].append(
            {"chat_id": chat_id, "message_id": message_id, "text": text, "markup": reply_markup}
        )
        return {"ok": True}

    def fake_send(chat_id, text, **kwargs):
        calls["sent"].append({"chat_id": chat_id, "text": text})
        return {"ok": True}

    monkeypatch.setattr("somah_market.telegram_bot.handlers.answer_callback_query", fake_answer)
    monkeypatch.setattr("somah_market.telegram_bot.handlers.edit_message_text", fake_edit)
    monkeypatch.setattr("somah_market.telegram_bot.channel.send_telegram_message", fake_send)
    return calls


@pytest.fixture
def order(db):
    order = Order.objects.create(
        order_number="SOMAH-000123",
        full_name="Aisha Khan",
        phone="+971500000000",
        address_line1="Villa 5",
        city="Dubai",
        emirate="Dubai",
        subtotal=Decimal("120.00"),
        total_amount=Decimal("120.00"),
    )
    OrderItem.objects.create(
        order=order,
        product_name="Ajwa dates",
        store_name="Date Palace",
        quantity=2,
        price=Decimal("60.00"),
        original_price=Decimal("60.00"),
    )
    return order


def test_handler_keyboard_has_one_button_per_member():
    order_id = uuid.uuid4()

    keyboard = build_handler_keyboard(order_id)

    buttons = keyboard["inline_keyboard"][0]
    assert [b["callback_data"] for b in buttons] == [
        f"handle_{order_id}_khaled",
        f"handle_{order_id}_hamad",
        f"handle_{order_id}_malil",
    ]

    assert [b["text"] for b in buttons] == [
        "👤 Handled by Khaled",
        "👤 Handled by Hamad",
        "👤 Handled by Malil",
    ]


def test_parse_claim_data_resolves_roster_name():
    order_id = uuid.uuid4()

    claim = parse_claim_data(f"handle_{order_id}_hamad")

    assert claim.order_id == order_id
    assert claim.handler == "Hamad"


@pytest.mark.parametrize(
    "data",
    [
        "",
        "handled",
        "delete_123_khaled",
        "handle_not-a-uuid_khaled",
        f"handle_{uuid.UUID(int=1)}",
        f"handle_{uuid.UUID(int=1)}_stranger",
    ],
)
def test_parse_claim_data_rejects_foreign_payloads(data):
    assert parse_claim_data(data) is None


def test_longest_allowed_name_fits_callback_data():
    name = "A" * 20

    validate_team_members([name])

    data = build_handler_keyboard(uuid.uuid4(), [name])["inline_keyboard"][0][0]["callback_data"]
    assert len(data.encode("utf-8")) <= MAX_CALLBACK_DATA_BYTES


@pytest.mark.parametrize("members", [["A" * 21], ["Khaled", "Абдурахмановфахр"], [""]])
def test_roster_that_breaks_callback_data_is_rejected(members):
    with pytest.raises(ImproperlyConfigured):
        validate_team_members(members)


def test_default_roster_is_valid(settings):
    validate_team_members(settings.TELEGRAM_TEAM_MEMBERS)


@pytest.mark.django_db
def test_first_claim_assigns_order(order, telegram_stubs):
    result = handlers.handle_callback_query(
        "cb-1", CHAT_ID, MESSAGE_ID, f"handle_{order.id}_khaled"
    )

    assert result == handlers.OUTCOME_ASSIGNED
    edit = telegram_stubs["edits"][0]
    assert edit["message_id"] == MESSAGE_ID
    assert "✅ <b>Handled by: Khaled</b>" in edit["text"]
    assert edit["markup"] == build_handled_keyboard("Khaled")
    assert edit["markup"]["inline_keyboard"][0][0]["callback_data"] == "handled"
    assert telegram_stubs["answers"][-1]["text"] == "✅ Order assigned to Khaled"


@pytest.mark.django_db
def test_claim_lock_expires(order, telegram_stubs, monkeypatch):
    timeouts = []

    class SpyCache:
        def add(self, key, value, timeout=None):
            timeouts.append(timeout)
            return cache.add(key, value, timeout=timeout)

        def delete(self, key):
            return cache.delete(key)

    monkeypatch.setattr(handlers, "cache", SpyCache())

    handlers.handle_callback_query("cb-1", CHAT_ID, MESSAGE_ID, f"handle_{order.id}_khaled")

    assert len(timeouts) == 1
    assert timeouts[0] is not None
    assert timeouts[0] > 0


@pytest.mark.django_db
def test_second_claim_is_rejected(order, telegram_stubs):
    handlers.handle_callback_query("cb-1", CHAT_ID, MESSAGE_ID, f"handle_{order.id}_khaled")

    result = handlers.handle_callback_query(
        "cb-2", CHAT_ID, MESSAGE_ID, f"handle_{order.id}_hamad"
    )

    assert result == handlers.OUTCOME_ALREADY_ASSIGNED
    assert len(telegram_stubs["edits"]) == 1
    assert telegram_stubs["answers"][-1] == {
        "id": "cb-2",
        "text": "✅ This order is already assigned",
        "alert": False,
    }


def test_handled_button_only_answers(telegram_stubs):
    result = handlers.handle_callback_query("cb-1", CHAT_ID, MESSAGE_ID, "handled")

    assert result == handlers.OUTCOME_ALREADY_ASSIGNED
    assert telegram_stubs["edits"] == []
    assert telegram_stubs["answers"][0]["text"] == "✅ This order is already assigned"


def test_invalid_payload_is_ignored(telegram_stubs):
    result = handlers.handle_callback_query("cb-1", CHAT_ID, MESSAGE_ID, "handle_oops")

    assert result == handlers.OUTCOME_IGNORED
    assert telegram_stubs["edits"] == []
    assert telegram_stubs["answers"][0]["text"] is None


@pytest.mark.django_db
def test_unknown_order_releases_claim(telegram_stubs):
    missing_id = uuid.uuid4()

    result = handlers.handle_callback_query(
        "cb-1", CHAT_ID, MESSAGE_ID, f"handle_{missing_id}_khaled"
    )

    assert result == handlers.OUTCOME_FAILED
    assert telegram_stubs["edits"] == []
    assert telegram_stubs["answers"][0] == {
        "id": "cb-1",
        "text": "❌ Error updating order",
        "alert": True,
    }
    assert cache.get(f"telegram:claim:{CHAT_ID}:{MESSAGE_ID}") is None


@pytest.mark.django_db
def test_failed_edit_allows_another_claim(order, telegram_stubs, monkeypatch):
    monkeypatch.setattr(
        "somah_market.telegram_bot.handlers.edit_message_text", lambda *a, **kw: None
    )

    result = handlers.handle_callback_query(
        "cb-1", CHAT_ID, MESSAGE_ID, f"handle_{order.id}_khaled"
    )

    assert result == handlers.OUTCOME_FAILED
    assert telegram_stubs["answers"][0]["alert"] is True
    assert cache.get(f"telegram:claim:{CHAT_ID}:{MESSAGE_ID}") is None


def test_first_group_message_sets_operations_chat(telegram_stubs):
    assert handlers.handle_incoming_message(CHAT_ID, "supergroup", "Ops") is True
    assert handlers.handle_incoming_message(CHAT_ID, "supergroup", "Ops") is False

    assert get_operations_chat_id() == CHAT_ID
    assert telegram_stubs["sent"] == [{"chat_id": CHAT_ID, "text": GREETING}]


def test_new_group_takes_over_operations_chat(telegram_stubs):
    handlers.handle_incoming_message(CHAT_ID, "supergroup", "Ops")

    assert handlers.handle_incoming_message(-100999, "group", "Night shift") is True

    assert get_operations_chat_id() == -100999
    assert telegram_stubs["sent"] == [
        {"chat_id": CHAT_ID, "text": GREETING},
        {"chat_id": -100999, "text": GREETING},
    ]


def test_operations_chat_and_claims_use_shared_cache_by_default():
    import somah_market.settings as base_settings

    default = base_settings.CACHES["default"]
    assert default["BACKEND"] == "django_redis.cache.RedisCache"
    assert default["LOCATION"].startswith("redis://")
    assert base_settings.TELEGRAM_CLAIM_LOCK_TIMEOUT > 0


def test_private_chat_is_not_discovered(telegram_stubs):
    assert handlers.handle_incoming_message(555, "private") is False
    assert get_operations_chat_id() is None


def test_configured_chat_wins(settings, telegram_stubs):
    settings.TELEGRAM_OPERATIONS_CHAT_ID = "-100555"

    assert handlers.handle_incoming_message(CHAT_ID, "group") is False
    assert get_operations_chat_id() == "-100555"


def test_long_message_is_cut_at_line_break():
    text = "\n".join(f"line {index}" for index in range(1000))

    fitted = fit_message_length(text, limit=100)

    assert len(fitted) <= 100
    assert fitted.endswith("\n…")
    assert fitted.split("\n")[-2].startswith("line ")


def test_webhook_rejects_wrong_secret(client):
    response = client.post(
        "/telegram/webhook/",
        data=json.dumps({}),
        content_type="application/json",
        HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN="wrong",
    )

    assert response.status_code == 403


@pytest.mark.django_db
def test_webhook_routes_callback_query(client, order, telegram_stubs):
    update = {
        "update_id": 1,
        "callback_query": {
            "id": "cb-9",
            "data": f"handle_{order.id}_malil",
            "message": {"message_id": MESSAGE_ID, "chat": {"id": CHAT_ID, "type": "supergroup"}},
        },
    }

    response = client.post(
        "/telegram/webhook/",
        data=json.dumps(update),
        content_type="application/json",
        HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN="test-webhook-secret",
    )

    assert response.status_code == 200
    assert telegram_stubs["answers"][-1]["text"] == "✅ Order assigned to Malil"


def test_webhook_routes_group_message(client, telegram_stubs):
    update = {
        "update_id": 2,
        "message": {
            "message_id": 1,
            "chat": {"id": CHAT_ID, "type": "group", "title": "Ops"},
            "text": "hello",
        },
    }

    response = client.post(
        "/telegram/webhook/",
        data=json.dumps(update),
        content_type="application/json",
        HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN="test-webhook-secret",
    )

    assert response.status_code == 200
    assert get_operations_chat_id() == CHAT_ID


def test_application_registers_claim_and_group_handlers():
    application = setup_application()

    registered = application.handlers[0]
    assert any(isinstance(handler, CallbackQueryHandler) for handler in registered)
    assert any(isinstance(handler, MessageHandler) for handler in registered)


def test_application_not_built_without_token(settings):
    settings.TELEGRAM_BOT_TOKEN = "PLACEHOLDER"

    assert setup_application() is None
