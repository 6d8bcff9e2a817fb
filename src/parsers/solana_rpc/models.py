"""Pydantic models for Solana JSON-RPC responses (jsonParsed encoding)."""

from decimal import Decimal

from pydantic import BaseModel


class TokenSupply(BaseModel):
    """Mint supply in UI units."""

    total: Decimal = Decimal("0")
    decimals: int = 9


class LargestAccount(BaseModel):
    """One entry of getTokenLargestAccounts (a token account, not a wallet)."""

    address: str
    ui_amount: Decimal = Decimal("0")


class MintAuthority(BaseModel):
    has_authority: bool = False
    authority: str | None = None


class SignatureInfo(BaseModel):
    """Transaction signature metadata, newest first in RPC responses."""

    signature: str
    slot: int = 0
    block_time: int | None = None  # unix seconds
    err: dict | str | None = None  # non-None means failed


class AccountKey(BaseModel):
    pubkey: str
    signer: bool = False
    writable: bool = False


class ParsedInstruction(BaseModel):
    """Instruction in jsonParsed form. `parsed` is None for unparsed programs."""

    program: str = ""
    program_id: str = ""
    parsed: dict | None = None

    @property
    def instruction_type(self) -> str:
        return str((self.parsed or {}).get("type", ""))

    @property
    def info(self) -> dict:
        info = (self.parsed or {}).get("info", {})
        return info if isinstance(info, dict) else {}


class ParsedTransaction(BaseModel):
    """Subset of getTransaction(jsonParsed) used by deployer and timing heuristics."""

    signature: str = ""
    block_time: int | None = None
    account_keys: list[AccountKey] = []
    inner_instructions: list[ParsedInstruction] = []  # flattened across all outer indexes
    log_messages: list[str] = []

    @property
    def first_signer(self) -> str | None:
        for key in self.account_keys:
            if key.signer:
                return key.pubkey
        return None
