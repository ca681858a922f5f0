import json

import pytest

from conftest import make_log
from services.payload_parser import find_latest_result, parse_execution_data, to_history_item

FULL_RESULT = {
    "stock_symbol": "TSLA",
    "current_price": 242.84,
    "daily_change_amount": 5.23,
    "daily_change_percentage": 2.2,
    "timestamp": "2026-10-19T11:30:00Z",
    "market_status": "Open",
    "email_sent": True,
    "recipient_email": "user@example.com",
}


def test_full_result_is_copied():
    data = parse_execution_data(make_log(1, result=FULL_RESULT))
    assert data is not None
    assert data.model_dump() == FULL_RESULT


def test_partial_result_leaves_missing_fields_absent():
    data = parse_execution_data(make_log(1, result={"current_price": 0, "email_sent": False}))
    assert data.current_price == 0
    assert data.email_sent is False
    assert data.stock_symbol is None
    assert data.daily_change_percentage is None
    assert data.model_fields_set == {"current_price", "email_sent"}


def test_unknown_keys_are_ignored():
    data = parse_execution_data(make_log(1, result={"stock_symbol": "TSLA", "volume": 1000}))
    assert data.model_fields_set == {"stock_symbol"}


@pytest.mark.parametrize("raw", [
    None,
    "",
    "not json at all",
    "{\"result\": ",
    json.dumps({"status": "ok"}),
    json.dumps({"result": None}),
    json.dumps({"result": "TSLA up"}),
    json.dumps([1, 2, 3]),
    "null",
    "42",
])
def test_undecodable_payloads_return_none(raw):
    log = make_log(1, raw=raw)
    assert parse_execution_data(log) is None


def test_wrongly_typed_field_is_dropped_and_others_survive():
    data = parse_execution_data(make_log(1, result={
        "stock_symbol": 123,
        "current_price": 242.84,
        "email_sent": True,
    }))
    assert data is not None
    assert data.stock_symbol is None
    assert data.current_price == 242.84
    assert data.email_sent is True
    assert data.model_fields_set == {"current_price", "email_sent"}


def test_values_are_not_coerced():
    data = parse_execution_data(make_log(1, result={"current_price": "242.84", "email_sent": "yes"}))
    assert data is not None
    assert data.current_price is None
    assert data.email_sent is None
    assert data.model_fields_set == set()


def test_integer_price_is_kept():
    data = parse_execution_data(make_log(1, result={"current_price": 242, "daily_change_amount": -3}))
    assert data.current_price == 242
    assert data.daily_change_amount == -3


def test_record_with_one_bad_field_still_feeds_latest():
    history = [to_history_item(make_log(1, success=True, result={"stock_symbol": 123, "current_price": 240.12}))]
    assert find_latest_result(history).current_price == 240.12


def test_already_decoded_payload_is_accepted():
    log = make_log(1, raw={"result": {"stock_symbol": "TSLA"}})
    assert parse_execution_data(log).stock_symbol == "TSLA"


def test_history_item_keeps_outcome_fields():
    item = to_history_item(make_log(7, success=False, raw="oops", error_message="timeout"))
    assert item.id == "7"
    assert item.success is False
    assert item.data is None
    assert item.error_message == "timeout"


def test_latest_skips_failed_and_undecodable_runs():
    history = [
        to_history_item(make_log(3, success=False, result={"current_price": 1.0})),
        to_history_item(make_log(2, success=True, raw="garbage")),
        to_history_item(make_log(1, success=True, result={"current_price": 240.12})),
    ]
    latest = find_latest_result(history)
    assert latest.current_price == 240.12


def test_latest_is_none_without_successful_data():
    history = [to_history_item(make_log(1, success=False, result={"current_price": 1.0}))]
    assert find_latest_result(history) is None
