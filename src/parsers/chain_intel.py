"""Chain data provider — holder snapshot and deployer / sniper heuristics.

Everything here degrades: a failed RPC call turns into a zero / None /
UNKNOWN field and a log line, never an aborted analysis. The only call that
raises is analyze_holders(), whose caller decides how to degrade.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from loguru import logger

from src.models.holder import HolderAnalysis
from src.models.token import RiskIntel
from src.parsers.exceptions import UpstreamError
from src.parsers.holder_concentration import aggregate_by_owner, build_holder_analysis, is_on_curve
from src.parsers.solana_rpc.client import SolanaRpcClient
from src.parsers.solana_rpc.models import LargestAccount, ParsedTransaction, TokenSupply
from src.utils.token_utils import is_valid_solana_address

SECONDS_PER_DAY = 86400

# Deployer identification
MINT_SIGNATURE_LIMIT = 50
DEPLOYER_SIGNATURE_LIMIT = 1000
DEPLOYER_MINT_SCAN_LIMIT = 200
INITIALIZE_MINT_TYPES = ("initializeMint", "initializeMint2")

# Deployer history
HISTORY_SIGNATURE_LIMIT = 100
HISTORY_TX_SCAN_LIMIT = 20
TOKEN_CREATION_LOG_MARKERS = ("InitializeMint", "CreateAccount")
NEW_WALLET_MAX_DAYS = 7
SERIAL_RUGGER_MIN_TOKENS = 5

# Transaction timing
PATTERN_MIN_SIGNATURES = 5
PATTERN_TX_SCAN_LIMIT = 20
CLUSTER_WINDOW_SEC = 30
CLUSTER_MIN_COUNT = 3
CLUSTER_MIN_SHARE = 0.3
SUSPICIOUS_MIN_SNIPERS = 5

TX_FETCH_CONCURRENCY = 5


@dataclass(frozen=True)
class DeployerInfo:
    address: str
    age_days: int = 0
    other_tokens_count: int = 0


@dataclass(frozen=True)
class DeployerHistory:
    token_count: int
    is_new_wallet: bool
    wallet_age_days: int | None = None


@dataclass(frozen=True)
class TransactionPatterns:
    sniper_wallets: int = 0
    clustering: bool = False
    suspicious_patterns: bool = False


class ChainDataProvider:
    """Wraps SolanaRpcClient with the holder and deployer heuristics."""

    def __init__(
        self,
        rpc: SolanaRpcClient,
        *,
        uses_public_rpc: bool = False,
        owner_max_concurrent: int = 5,
        curve_check: Callable[[str], bool] = is_on_curve,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rpc = rpc
        self._uses_public_rpc = uses_public_rpc
        self._owner_semaphore = asyncio.Semaphore(max(1, owner_max_concurrent))
        self._tx_semaphore = asyncio.Semaphore(TX_FETCH_CONCURRENCY)
        self._curve_check = curve_check
        self._clock = clock

    async def get_token_supply(self, mint: str) -> TokenSupply:
        """Fails soft to {0, 9}."""
        try:
            return await self._rpc.get_token_supply(mint)
        except UpstreamError as e:
            logger.debug(f"[CHAIN] Supply lookup failed for {mint[:12]}: {e}")
            return TokenSupply()

    async def get_largest_holder_accounts(self, mint: str) -> list[LargestAccount]:
        return await self._rpc.get_token_largest_accounts(mint)

    async def _resolve_owner(self, account: LargestAccount) -> str | None:
        async with self._owner_semaphore:
            try:
                return await self._rpc.get_account_owner(account.address)
            except UpstreamError as e:
                logger.debug(f"[CHAIN] Owner lookup failed for {account.address[:12]}: {e}")
                return None

    async def analyze_holders(
        self, mint: str, supply: TokenSupply | None = None
    ) -> HolderAnalysis:
        """Largest accounts → owners → HolderAnalysis.

        Owner lookups run concurrently; gather() keeps input order so tie
        breaks stay deterministic. Raises UpstreamError if the largest-accounts
        query itself fails.
        """
        if supply is None:
            supply = await self.get_token_supply(mint)

        accounts = await self.get_largest_holder_accounts(mint)
        if not accounts:
            return HolderAnalysis.empty(supply.total)

        owners = await asyncio.gather(*[self._resolve_owner(acc) for acc in accounts])
        balances = aggregate_by_owner(
            (owner, acc.ui_amount) for owner, acc in zip(owners, accounts)
        )
        analysis = build_holder_analysis(supply.total, balances, curve_check=self._curve_check)
        return replace(analysis, account_count=_nonzero_count(accounts))

    async def count_holders(self, mint: str) -> int:
        """Non-zero largest accounts (RPC caps the list at 20). 0 when unknown.

        Only needed when no HolderAnalysis is at hand; analyze_holders()
        already reports the same count as account_count.
        """
        try:
            accounts = await self.get_largest_holder_accounts(mint)
        except UpstreamError as e:
            logger.debug(f"[CHAIN] Holder count failed for {mint[:12]}: {e}")
            return 0
        return _nonzero_count(accounts)

    async def check_mint_authority(self, mint: str) -> bool | None:
        """True/False when known, None when the lookup failed."""
        try:
            authority = await self._rpc.get_mint_authority(mint)
        except UpstreamError as e:
            logger.debug(f"[CHAIN] Mint authority check failed for {mint[:12]}: {e}")
            return None
        logger.debug(
            f"[CHAIN] Mint authority {'active' if authority.has_authority else 'disabled'} for {mint[:12]}"
        )
        return authority.has_authority

    async def _fetch_transactions(self, signatures: list[str]) -> list[ParsedTransaction]:
        """Fetch transactions concurrently, dropping failures, preserving order."""

        async def _one(sig: str) -> ParsedTransaction | None:
            async with self._tx_semaphore:
                return await self._rpc.get_parsed_transaction(sig)

        results = await asyncio.gather(*[_one(s) for s in signatures], return_exceptions=True)
        return [r for r in results if isinstance(r, ParsedTransaction)]

    def _age_days(self, block_time: int | None) -> int | None:
        if not block_time:
            return None
        return int((self._clock() - block_time) // SECONDS_PER_DAY)

    async def find_deployer(self, mint: str) -> DeployerInfo:
        """First signer of the oldest visible mint transaction.

        Also reports wallet age and how many other mints the wallet
        initialized in its recent history. Raises UpstreamError when the
        deployer cannot be identified.
        """
        signatures = await self._rpc.get_signatures_for_address(mint, limit=MINT_SIGNATURE_LIMIT)
        if not signatures:
            raise UpstreamError("No signatures found for mint")

        tx = await self._rpc.get_parsed_transaction(signatures[-1].signature)
        deployer = tx.first_signer if tx else None
        if not deployer:
            raise UpstreamError("Could not identify deployer")

        deployer_sigs = await self._rpc.get_signatures_for_address(
            deployer, limit=DEPLOYER_SIGNATURE_LIMIT
        )
        age_days = self._age_days(deployer_sigs[-1].block_time) if deployer_sigs else None

        other_tokens = 0
        recent = [s.signature for s in deployer_sigs[:DEPLOYER_MINT_SCAN_LIMIT]]
        for deployer_tx in await self._fetch_transactions(recent):
            for ix in deployer_tx.inner_instructions:
                if ix.program != "spl-token" or ix.instruction_type not in INITIALIZE_MINT_TYPES:
                    continue
                if ix.info.get("mint") != mint:
                    other_tokens += 1

        logger.info(
            f"[CHAIN] Deployer {deployer[:12]} age={age_days}d other_mints={other_tokens}"
        )
        return DeployerInfo(address=deployer, age_days=age_days or 0, other_tokens_count=other_tokens)

    async def analyze_deployer_history(self, deployer: str) -> DeployerHistory:
        """Count token-creation transactions and judge wallet freshness.

        On failure returns the conservative {1 token, not new} fallback.
        """
        try:
            signatures = await self._rpc.get_signatures_for_address(
                deployer, limit=HISTORY_SIGNATURE_LIMIT
            )
        except UpstreamError as e:
            logger.warning(f"[CHAIN] Deployer history failed for {deployer[:12]}: {e}")
            return DeployerHistory(token_count=1, is_new_wallet=False)

        if not signatures:
            return DeployerHistory(token_count=0, is_new_wallet=True, wallet_age_days=0)

        token_count = 0
        scan = [s.signature for s in signatures[:HISTORY_TX_SCAN_LIMIT]]
        for tx in await self._fetch_transactions(scan):
            if any(
                marker in log for log in tx.log_messages for marker in TOKEN_CREATION_LOG_MARKERS
            ):
                token_count += 1

        oldest = signatures[-1].block_time
        wallet_age_sec = self._clock() - oldest if oldest else 0
        is_new = wallet_age_sec < NEW_WALLET_MAX_DAYS * SECONDS_PER_DAY

        logger.debug(
            f"[CHAIN] Deployer {deployer[:12]}: {token_count} creation txs, "
            f"{'new' if is_new else 'old'} wallet"
        )
        return DeployerHistory(
            token_count=token_count,
            is_new_wallet=is_new,
            wallet_age_days=int(wallet_age_sec // SECONDS_PER_DAY),
        )

    async def analyze_transaction_patterns(self, mint: str) -> TransactionPatterns:
        """Detect sniper clustering from the timing of the first signers.

        Each wallet keeps its first-seen block time; consecutive sorted times
        under CLUSTER_WINDOW_SEC apart count as clustered trades.
        """
        try:
            signatures = await self._rpc.get_signatures_for_address(mint, limit=MINT_SIGNATURE_LIMIT)
        except UpstreamError as e:
            logger.debug(f"[CHAIN] Pattern scan failed for {mint[:12]}: {e}")
            return TransactionPatterns()

        if len(signatures) < PATTERN_MIN_SIGNATURES:
            return TransactionPatterns()

        wallet_times: dict[str, int] = {}
        scan = [s.signature for s in signatures[:PATTERN_TX_SCAN_LIMIT]]
        for tx in await self._fetch_transactions(scan):
            signer = tx.first_signer
            if signer and tx.block_time is not None and signer not in wallet_times:
                wallet_times[signer] = tx.block_time

        return cluster_first_seen_times(list(wallet_times.values()))

    async def gather_risk_intel(self, mint: str, creator: str | None = None) -> RiskIntel:
        """Deployer / sniper / mint-authority intel for the snapshot.

        Public RPC: only the mint-authority check. No known creator: try to
        identify the deployer on-chain first.
        """
        if self._uses_public_rpc:
            return RiskIntel.unknown(await self.check_mint_authority(mint))

        deployer = creator if creator and is_valid_solana_address(creator) else None
        if deployer is None:
            try:
                deployer = (await self.find_deployer(mint)).address
            except UpstreamError as e:
                logger.debug(f"[CHAIN] Deployer lookup failed for {mint[:12]}: {e}")
                return RiskIntel.unknown(await self.check_mint_authority(mint))

        history, patterns, mint_authority = await asyncio.gather(
            self.analyze_deployer_history(deployer),
            self.analyze_transaction_patterns(mint),
            self.check_mint_authority(mint),
        )

        same_deployer_count = max(1, history.token_count)
        rug_creator_risk = same_deployer_count > SERIAL_RUGGER_MIN_TOKENS and history.is_new_wallet

        intel = RiskIntel(
            fresh_wallet_buys=patterns.sniper_wallets,
            same_deployer_count=same_deployer_count,
            rug_creator_risk=rug_creator_risk,
            dump_risk="HIGH" if patterns.suspicious_patterns else "LOW",
            buy_pressure="WEAK" if patterns.clustering else "NORMAL",
            bot_activity=patterns.suspicious_patterns,
            is_new_wallet=history.is_new_wallet,
            has_active_mint_authority=mint_authority,
            wallet_clustering=patterns.clustering,
            deployer_address=deployer,
            deployer_age_days=history.wallet_age_days,
        )
        logger.info(
            f"[CHAIN] Intel {mint[:12]}: snipers={intel.fresh_wallet_buys} "
            f"deployer_tokens={same_deployer_count} clustering={intel.wallet_clustering} "
            f"mint_authority={mint_authority}"
        )
        return intel


def _nonzero_count(accounts: list[LargestAccount]) -> int:
    return sum(1 for acc in accounts if acc.ui_amount > 0)


def cluster_first_seen_times(timestamps: list[int]) -> TransactionPatterns:
    """Pure timing heuristic over per-wallet first-seen block times."""
    ordered = sorted(timestamps)
    clustered = sum(
        1 for prev, cur in zip(ordered, ordered[1:]) if cur - prev < CLUSTER_WINDOW_SEC
    )
    clustering = clustered > max(CLUSTER_MIN_COUNT, len(ordered) * CLUSTER_MIN_SHARE)
    snipers = min(clustered, len(ordered))
    return TransactionPatterns(
        sniper_wallets=snipers,
        clustering=clustering,
        suspicious_patterns=clustering and snipers > SUSPICIOUS_MIN_SNIPERS,
    )
