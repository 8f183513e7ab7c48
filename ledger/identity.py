"""Resolution of fungible stores to tracked vault share assets."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from ledger.entities import StoreMetadataCache, Vault
from ledger.errors import IdentityResolutionError
from ledger.events import pad_address
from ledger.store import EntityStore, FieldFilter

logger = logging.getLogger(__name__)

STORE_METADATA_FUNCTION = "0x1::fungible_asset::store_metadata"
FUNGIBLE_STORE_TYPE = "0x1::fungible_asset::FungibleStore"


class MetadataViewClient(Protocol):
    """Chain view access needed to identify a fungible store's asset."""

    def store_metadata(self, store_address: str, ledger_version: Optional[int] = None) -> str:
        """Return the fungible asset metadata address held by a store.

        `ledger_version` pins the read to the chain state at that version.
        """


class AptosViewClient:
    """HTTP client for the Aptos node `/view` endpoint."""

    def __init__(
        self,
        *,
        base_url: str,
        requester: Optional[Callable[[str, dict[str, Any]], Any]] = None,
        attempts: int = 3,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._requester = requester
        self._attempts = attempts

    def _post_json(self, path: str, payload: dict[str, Any]) -> Any:
        if self._requester is not None:
            return self._requester(path, payload)

        url = f"{self._base_url}{path}"
        request = Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        last_error: Exception | None = None
        for _ in range(self._attempts):
            try:
                with urlopen(request, timeout=20.0) as response:
                    return json.loads(response.read().decode("utf-8"))
            except (HTTPError, URLError, TimeoutError) as exc:
                last_error = exc
                continue

        raise IdentityResolutionError(f"View request to {path} failed after retries: {last_error}") from last_error

    def store_metadata(self, store_address: str, ledger_version: Optional[int] = None) -> str:
        path = "/v1/view"
        if ledger_version is not None:
            path = f"{path}?{urlencode({'ledger_version': ledger_version})}"
        result = self._post_json(
            path,
            {
                "function": STORE_METADATA_FUNCTION,
                "type_arguments": [FUNGIBLE_STORE_TYPE],
                "arguments": [store_address],
            },
        )
        try:
            metadata = result[0]["inner"]
        except (IndexError, KeyError, TypeError) as exc:
            raise IdentityResolutionError(
                f"store_metadata returned no fungible asset metadata for store={store_address}: {result!r}"
            ) from exc
        if not metadata:
            raise IdentityResolutionError(f"store_metadata returned empty metadata for store={store_address}.")
        return str(metadata)


def find_vault_by_shares(store: EntityStore, shares_metadata: str) -> Optional[Vault]:
    """Look up the vault whose share token is `shares_metadata`, if any."""
    vaults = store.list(Vault, [FieldFilter("shares_metadata", "=", pad_address(shares_metadata))], limit=1)
    return vaults[0] if vaults else None


class StoreIdentityResolver:
    """Cache-first resolver deciding whether a fungible store holds vault shares."""

    def __init__(self, store: EntityStore, client: MetadataViewClient) -> None:
        self._store = store
        self._client = client

    def resolve(self, store_address: str, ledger_version: Optional[int] = None) -> StoreMetadataCache:
        """Return the cached identity of a store, querying the chain on first sight."""
        cached = self._store.get(StoreMetadataCache, store_address)
        if cached is not None:
            return cached

        metadata = pad_address(self._client.store_metadata(store_address, ledger_version))
        vault = find_vault_by_shares(self._store, metadata)
        entry = StoreMetadataCache(
            id=store_address,
            metadata=metadata,
            is_tracked=vault is not None,
            vault_id=vault.id if vault is not None else None,
        )
        self._store.upsert(entry)
        logger.debug(
            "Cached metadata for store=%s metadata=%s tracked=%s.",
            store_address,
            metadata,
            entry.is_tracked,
        )
        return entry
