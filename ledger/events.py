"""Event envelopes and decoders for on-chain balance-changing events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ledger.errors import EventDecodeError

SECONDS_PER_DAY = 86_400
MICROS_PER_SECOND = 1_000_000
ADDRESS_HEX_LENGTH = 64


@dataclass(frozen=True)
class BalanceEvent:
    """A signed balance change of one account, ready for the accumulator."""

    account_id: str
    timestamp: int
    signed_delta: int
    ordering_key: tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class RawEvent:
    """Envelope of a decoded chain event as delivered by the event source."""

    name: str
    data: Mapping[str, Any]
    timestamp_micros: int
    version: int
    event_index: int = 0
    sender: Optional[str] = None

    @property
    def timestamp(self) -> int:
        return timestamp_in_seconds(self.timestamp_micros)

    @property
    def ordering_key(self) -> tuple[int, int]:
        return (self.version, self.event_index)

    @property
    def transaction_id(self) -> str:
        return transaction_id(self.version, self.event_index)


@dataclass(frozen=True)
class FungibleAssetEvent:
    store: str
    amount: int


@dataclass(frozen=True)
class StakingEvent:
    user: str
    staking_token: str
    amount: int


@dataclass(frozen=True)
class VaultCreatedEvent:
    vault: str
    shares_metadata: str
    extra: Mapping[str, Any] = field(default_factory=dict)


def timestamp_in_seconds(timestamp_micros: int) -> int:
    """Convert a microsecond chain timestamp to whole seconds."""
    return int(timestamp_micros) // MICROS_PER_SECOND


def normalize_to_day(timestamp: int) -> int:
    """Truncate a timestamp in seconds to 00:00:00 UTC of its day."""
    return (timestamp // SECONDS_PER_DAY) * SECONDS_PER_DAY


def pad_address(address: str) -> str:
    """Left-pad a hex address to 32 bytes with a `0x` prefix."""
    clean = address[2:] if address.startswith("0x") else address
    return "0x" + clean.lower().rjust(ADDRESS_HEX_LENGTH, "0")


def transaction_id(version: int, event_index: int) -> str:
    return f"{version}-{event_index}"


def _require(data: Mapping[str, Any], key: str, event_name: str) -> Any:
    if key not in data or data[key] is None:
        raise EventDecodeError(f"{event_name} payload is missing field '{key}'.")
    return data[key]


def _as_address(value: Any, key: str, event_name: str) -> str:
    # Move object references arrive either bare or wrapped as {"inner": address}.
    if isinstance(value, Mapping):
        value = _require(value, "inner", event_name)
    if not isinstance(value, str) or value.strip() == "":
        raise EventDecodeError(f"{event_name} field '{key}' is not an address: {value!r}")
    return pad_address(value.strip())


def _as_amount(value: Any, event_name: str) -> int:
    try:
        amount = int(str(value))
    except ValueError as exc:
        raise EventDecodeError(f"{event_name} amount is not an integer: {value!r}") from exc
    if amount < 0:
        raise EventDecodeError(f"{event_name} amount must be non-negative: {amount}")
    return amount


def decode_fungible_asset_event(event: RawEvent) -> FungibleAssetEvent:
    """Decode a `Deposit` or `Withdraw` fungible store event."""
    return FungibleAssetEvent(
        store=_as_address(_require(event.data, "store", event.name), "store", event.name),
        amount=_as_amount(_require(event.data, "amount", event.name), event.name),
    )


def decode_staking_event(event: RawEvent) -> StakingEvent:
    """Decode a multi-rewards `StakeEvent` or `WithdrawEvent`."""
    return StakingEvent(
        user=_as_address(_require(event.data, "user", event.name), "user", event.name),
        staking_token=_as_address(
            _require(event.data, "staking_token", event.name), "staking_token", event.name
        ),
        amount=_as_amount(_require(event.data, "amount", event.name), event.name),
    )


def decode_vault_created_event(event: RawEvent) -> VaultCreatedEvent:
    vault = _as_address(_require(event.data, "vault", event.name), "vault", event.name)
    shares = _as_address(
        _require(event.data, "shares_metadata", event.name), "shares_metadata", event.name
    )
    extra = {key: value for key, value in event.data.items() if key not in {"vault", "shares_metadata"}}
    return VaultCreatedEvent(vault=vault, shares_metadata=shares, extra=extra)
