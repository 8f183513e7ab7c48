"""Unit tests for chain event envelopes, decoders and address helpers."""

from __future__ import annotations

import pytest

from ledger.errors import EventDecodeError
from ledger.events import (
    RawEvent,
    decode_fungible_asset_event,
    decode_staking_event,
    decode_vault_created_event,
    normalize_to_day,
    pad_address,
    timestamp_in_seconds,
    transaction_id,
)

PADDED_ONE = "0x" + "0" * 63 + "1"


def test_timestamp_in_seconds_truncates_microseconds() -> None:
    assert timestamp_in_seconds(1_700_000_000_999_999) == 1_700_000_000
    assert timestamp_in_seconds(0) == 0


def test_normalize_to_day() -> None:
    assert normalize_to_day(1_700_000_000) == 1_699_920_000
    assert normalize_to_day(86_400) == 86_400


@pytest.mark.parametrize("address", ["0x1", "1", "0x0000000000000000000000000000000000000000000000000000000000000001"])
def test_pad_address_left_pads_to_32_bytes(address: str) -> None:
    assert pad_address(address) == PADDED_ONE


def test_pad_address_lowercases() -> None:
    assert pad_address("0xABC") == "0x" + "0" * 61 + "abc"


def test_raw_event_derived_fields() -> None:
    event = RawEvent(name="Deposit", data={}, timestamp_micros=5_000_000, version=42, event_index=3)

    assert event.timestamp == 5
    assert event.ordering_key == (42, 3)
    assert event.transaction_id == "42-3" == transaction_id(42, 3)


def test_decode_fungible_asset_event() -> None:
    event = RawEvent(name="Deposit", data={"store": "0xA", "amount": "1000"}, timestamp_micros=0, version=1)

    decoded = decode_fungible_asset_event(event)

    assert decoded.store == "0x" + "0" * 63 + "a"
    assert decoded.amount == 1000


def test_decode_staking_event_accepts_wrapped_token() -> None:
    event = RawEvent(
        name="StakeEvent",
        data={"user": "0x2", "staking_token": {"inner": "0x3"}, "amount": 7},
        timestamp_micros=0,
        version=1,
    )

    decoded = decode_staking_event(event)

    assert decoded.user == "0x" + "0" * 63 + "2"
    assert decoded.staking_token == "0x" + "0" * 63 + "3"
    assert decoded.amount == 7


def test_decode_vault_created_keeps_extra_fields() -> None:
    event = RawEvent(
        name="VaultCreated",
        data={"vault": "0x4", "shares_metadata": {"inner": "0x5"}, "name": "Vault A"},
        timestamp_micros=0,
        version=1,
    )

    decoded = decode_vault_created_event(event)

    assert decoded.vault == "0x" + "0" * 63 + "4"
    assert decoded.shares_metadata == "0x" + "0" * 63 + "5"
    assert decoded.extra == {"name": "Vault A"}


@pytest.mark.parametrize(
    ("data", "match"),
    [
        ({"amount": "1"}, "missing field 'store'"),
        ({"store": "0x1"}, "missing field 'amount'"),
        ({"store": "", "amount": "1"}, "not an address"),
        ({"store": {"outer": "0x1"}, "amount": "1"}, "missing field 'inner'"),
        ({"store": "0x1", "amount": "ten"}, "not an integer"),
        ({"store": "0x1", "amount": "-1"}, "non-negative"),
    ],
)
def test_decode_rejects_malformed_payloads(data: dict, match: str) -> None:
    event = RawEvent(name="Withdraw", data=data, timestamp_micros=0, version=1)

    with pytest.raises(EventDecodeError, match=match):
        decode_fungible_asset_event(event)
