"""Solana JSON-RPC client — supply, largest holders, account owners, signatures."""

import json
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

import httpx
from loguru import logger

from src.parsers.exceptions import UpstreamError
from src.parsers.solana_rpc.models import (
    AccountKey,
    LargestAccount,
    MintAuthority,
    ParsedInstruction,
    ParsedTransaction,
    SignatureInfo,
    TokenSupply,
)
from src.parsers.upstream import RateLimiter, UpstreamGuard

COMMITMENT = "confirmed"

T = TypeVar("T")


class SolanaRpcClient:
    """Async JSON-RPC client. Every call goes through the shared UpstreamGuard.

    No retries: a failed call raises UpstreamError and the caller decides
    whether to fall back or degrade.
    """

    def __init__(
        self,
        rpc_url: str,
        guard: UpstreamGuard,
        *,
        timeout: float = 15.0,
        max_rps: float = 10.0,
    ) -> None:
        self._rpc_url = rpc_url
        self._guard = guard
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=timeout)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def close(self) -> None:
        await self._client.aclose()

    async def _rpc(
        self,
        method: str,
        params: list[Any],
        parse: Callable[[Any], T],
        *,
        cache: bool = True,
    ) -> T:
        """POST one JSON-RPC request and parse its `result` field.

        Transport errors, non-JSON bodies and results of an unexpected shape
        all surface as UpstreamError.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        cache_key = f"rpc:{method}:{json.dumps(params, sort_keys=True)}" if cache else None

        async def _fetch() -> Any:
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.post(self._rpc_url, json=payload)
            except httpx.HTTPError as e:
                raise UpstreamError(f"{method}: {type(e).__name__}: {e}") from e

            if resp.status_code != 200:
                raise UpstreamError(f"{method}: HTTP {resp.status_code}")

            try:
                data = resp.json()
            except ValueError as e:
                raise UpstreamError(f"{method}: invalid JSON body: {e}") from e
            if not isinstance(data, dict):
                raise UpstreamError(f"{method}: unexpected body type {type(data).__name__}")
            if "error" in data:
                raise UpstreamError(f"{method}: RPC error {data['error']}")
            return data.get("result")

        result = await self._guard.call(self._rpc_url, _fetch, cache_key=cache_key)
        try:
            return parse(result)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"{method}: malformed result: {type(e).__name__}: {e}") from e

    async def get_token_supply(self, mint: str) -> TokenSupply:
        return await self._rpc(
            "getTokenSupply", [mint, {"commitment": COMMITMENT}], _parse_supply
        )

    async def get_token_largest_accounts(self, mint: str) -> list[LargestAccount]:
        """Largest token accounts for a mint (RPC caps this at 20), descending."""
        return await self._rpc(
            "getTokenLargestAccounts", [mint, {"commitment": COMMITMENT}], _parse_largest_accounts
        )

    async def _get_parsed_info(self, address: str) -> dict | None:
        """`parsed.info` of a jsonParsed account, None when absent or unparsed."""
        return await self._rpc(
            "getAccountInfo",
            [address, {"encoding": "jsonParsed", "commitment": COMMITMENT}],
            _parse_account_info,
        )

    async def get_account_owner(self, token_account: str) -> str | None:
        """Resolve a token account to the wallet that owns it."""
        info = await self._get_parsed_info(token_account)
        if info is None:
            return None
        owner = info.get("owner")
        return owner if isinstance(owner, str) else None

    async def get_mint_authority(self, mint: str) -> MintAuthority:
        info = await self._get_parsed_info(mint)
        if info is None:
            return MintAuthority()
        authority = info.get("mintAuthority")
        if not isinstance(authority, str) or not authority:
            authority = None
        return MintAuthority(has_authority=authority is not None, authority=authority)

    async def get_signatures_for_address(
        self, address: str, *, limit: int = 50
    ) -> list[SignatureInfo]:
        """Signatures for an address, newest first."""
        return await self._rpc(
            "getSignaturesForAddress",
            [address, {"limit": min(limit, 1000), "commitment": COMMITMENT}],
            _parse_signatures,
        )

    async def get_parsed_transaction(self, signature: str) -> ParsedTransaction | None:
        tx = await self._rpc(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "maxSupportedTransactionVersion": 0,
                    "commitment": COMMITMENT,
                },
            ],
            lambda result: _parse_transaction(signature, result) if result else None,
        )
        if tx is None:
            logger.debug(f"[RPC] Transaction {signature[:12]} not found")
        return tx


def _ui_amount(value: dict) -> Decimal:
    """Prefer the exact uiAmountString; uiAmount is a float and may be null."""
    raw = value.get("uiAmountString")
    if raw is None:
        raw = value.get("uiAmount")
    if raw is None:
        return Decimal("0")
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        return Decimal("0")


def _parse_supply(result: dict | None) -> TokenSupply:
    value = (result or {}).get("value") or {}
    return TokenSupply(
        total=_ui_amount(value),
        decimals=int(value.get("decimals", 9)),
    )


def _parse_largest_accounts(result: dict | None) -> list[LargestAccount]:
    return [
        LargestAccount(address=acc.get("address", ""), ui_amount=_ui_amount(acc))
        for acc in (result or {}).get("value") or []
        if acc.get("address")
    ]


def _parse_account_info(result: dict | None) -> dict | None:
    value = (result or {}).get("value")
    if not value:
        return None
    data = value.get("data")
    if not isinstance(data, dict):
        return None
    parsed = data.get("parsed")
    if not isinstance(parsed, dict):
        return None
    info = parsed.get("info")
    return info if isinstance(info, dict) else None


def _parse_signatures(result: list | None) -> list[SignatureInfo]:
    return [
        SignatureInfo(
            signature=sig.get("signature", ""),
            slot=sig.get("slot", 0),
            block_time=sig.get("blockTime"),
            err=sig.get("err"),
        )
        for sig in result or []
    ]


def _parse_transaction(signature: str, data: dict) -> ParsedTransaction:
    """Parse a raw getTransaction(jsonParsed) result."""
    message = (data.get("transaction") or {}).get("message") or {}
    account_keys = []
    for key in message.get("accountKeys", []):
        # Legacy responses may list bare pubkey strings
        if isinstance(key, str):
            account_keys.append(AccountKey(pubkey=key))
        else:
            account_keys.append(
                AccountKey(
                    pubkey=str(key.get("pubkey", "")),
                    signer=bool(key.get("signer", False)),
                    writable=bool(key.get("writable", False)),
                )
            )

    meta = data.get("meta") or {}
    inner = [
        ParsedInstruction(
            program=ix.get("program", ""),
            program_id=ix.get("programId", ""),
            parsed=ix.get("parsed") if isinstance(ix.get("parsed"), dict) else None,
        )
        for group in meta.get("innerInstructions") or []
        for ix in group.get("instructions", [])
    ]

    return ParsedTransaction(
        signature=signature,
        block_time=data.get("blockTime"),
        account_keys=account_keys,
        inner_instructions=inner,
        log_messages=meta.get("logMessages") or [],
    )
