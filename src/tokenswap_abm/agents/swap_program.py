from mesa import Agent
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import logging

from tokenswap_abm.core.curves import compute_withdraw
from tokenswap_abm.core.pool import DepositQuote, Pool, SwapQuote
from tokenswap_abm.core.token import Token, TokenAccount
from tokenswap_abm.utils.math_helpers import fee_ratio_from

logger = logging.getLogger(__name__)

AccountRef = Union[str, TokenAccount]

PROGRAM_ID = "TokenSwapProgram111111111111111111111111111"


class SwapProgramError(ValueError):
    """A transaction the swap program rejects."""


def _address(account: AccountRef) -> str:
    return account.address if isinstance(account, TokenAccount) else account


class SwapProgramAgent(Agent):
    """
    In-memory token-swap program: the ledger that pool snapshots are read from.

    It owns every mint, token account and pool in the simulation and
    applies deposits, withdrawals and swaps the way the on-chain program
    does. Reads always return fresh immutable snapshots; callers compute
    transaction parameters from a snapshot and submit them here.

    Attributes:
        program_id (str): Identifier stamped on every pool.
        current_slot (int): Slot counter, advanced once per step.
        mints (Dict[str, Token]): Known mints by address.
        supply (Dict[str, int]): Outstanding supply per mint address.
        accounts (Dict[str, TokenAccount]): Token accounts by address.
        pools (Dict[str, Dict[str, Any]]): Pool records by pool address.
        event_logs (Dict[int, List[Tuple[str, Any]]]): Events per slot.
    """

    def __init__(self, model, program_id: str = PROGRAM_ID):
        super().__init__(model)
        self.program_id = program_id
        self.current_slot: int = 0
        self._next_address: int = 1
        self.mints: Dict[str, Token] = {}
        self.supply: Dict[str, int] = {}
        self.accounts: Dict[str, TokenAccount] = {}
        self.pools: Dict[str, Dict[str, Any]] = {}
        self.event_logs: Dict[int, List[Tuple[str, Any]]] = {}
        self.metrics: Dict[str, int] = {
            "pools_created": 0,
            "deposits": 0,
            "withdrawals": 0,
            "swaps": 0,
        }

    def _new_address(self, prefix: str) -> str:
        address = f"{prefix}-{self._next_address}"
        self._next_address += 1
        return address

    # ------------------------------------------------------------------
    # Mints and accounts
    # ------------------------------------------------------------------

    def create_token(self, name: Optional[str] = None, decimals: int = 0) -> Token:
        """Create a new mint with zero supply."""
        token = Token(address=self._new_address("mint"), decimals=decimals, name=name)
        self.mints[token.address] = token
        self.supply[token.address] = 0
        return token

    def create_account(self, mint: Token, owner: str, balance: int = 0) -> TokenAccount:
        """Open a token account for ``owner``, minting ``balance`` into it."""
        if mint.address not in self.mints:
            raise SwapProgramError(f"Unknown mint {mint.address}")
        account = TokenAccount(
            address=self._new_address("account"), mint=mint, balance=0, owner=owner
        )
        self.accounts[account.address] = account
        if balance:
            self.mint_to(account, balance)
        return self.accounts[account.address]

    def mint_to(self, account: AccountRef, amount: int) -> None:
        """Mint ``amount`` new tokens into ``account``."""
        if amount < 0:
            raise SwapProgramError(f"Cannot mint a negative amount: {amount}")
        acct = self.get_account(account)
        self.accounts[acct.address] = acct.with_balance(acct.balance + amount)
        self.supply[acct.mint.address] += amount

    def get_account(self, account: AccountRef) -> TokenAccount:
        """Return the current state of a token account."""
        address = _address(account)
        try:
            return self.accounts[address]
        except KeyError:
            raise SwapProgramError(f"Unknown token account {address}") from None

    def get_accounts_for_token(self, owner: str, mint: Token) -> List[TokenAccount]:
        """All of ``owner``'s accounts holding ``mint``."""
        return [
            acct for acct in self.accounts.values()
            if acct.owner == owner and acct.mint == mint
        ]

    def _transfer(self, source: AccountRef, destination: AccountRef, amount: int, signer: str) -> None:
        src = self.get_account(source)
        dst = self.get_account(destination)
        if src.owner != signer:
            raise SwapProgramError(f"{signer} cannot sign for account {src.address}")
        if src.mint != dst.mint:
            raise SwapProgramError(
                f"Mint mismatch: {src.mint.address} -> {dst.mint.address}"
            )
        if amount < 0 or src.balance < amount:
            raise SwapProgramError(
                f"Insufficient balance in {src.address}: has {src.balance}, needs {amount}"
            )
        self.accounts[src.address] = src.with_balance(src.balance - amount)
        dst = self.accounts[dst.address]
        self.accounts[dst.address] = dst.with_balance(dst.balance + amount)

    def _burn(self, account: AccountRef, amount: int, signer: str) -> None:
        acct = self.get_account(account)
        if acct.owner != signer:
            raise SwapProgramError(f"{signer} cannot sign for account {acct.address}")
        if amount < 0 or acct.balance < amount:
            raise SwapProgramError(
                f"Insufficient balance in {acct.address}: has {acct.balance}, needs {amount}"
            )
        self.accounts[acct.address] = acct.with_balance(acct.balance - amount)
        self.supply[acct.mint.address] -= amount

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """
        Apply a group of ledger changes all-or-nothing.

        Mint, supply and account state is copied on entry and put back if the
        body raises; the exception is re-raised unchanged.
        """
        saved = (self.mints.copy(), self.supply.copy(), self.accounts.copy())
        try:
            yield
        except Exception:
            self.mints, self.supply, self.accounts = saved
            raise

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    def create_pool(
        self,
        owner: str,
        donor_a: AccountRef,
        donor_b: AccountRef,
        token_a_amount: int,
        token_b_amount: int,
        fee_numerator: int = 0,
        fee_denominator: int = 1,
    ) -> Pool:
        """
        Create a pool funded from ``owner``'s donor accounts.

        The owner receives ``token_a_amount`` pool tokens in a new account.
        """
        fee_ratio = fee_ratio_from(fee_numerator, fee_denominator)
        if token_a_amount <= 0 or token_b_amount <= 0:
            raise SwapProgramError("A new pool must be funded with both tokens")
        mint_a = self.get_account(donor_a).mint
        mint_b = self.get_account(donor_b).mint
        if mint_a == mint_b:
            raise SwapProgramError("A pool needs two different tokens")

        pool_address = self._new_address("pool")
        authority = f"authority:{pool_address}"
        with self._transaction():
            reserve_a = self.create_account(mint_a, authority)
            reserve_b = self.create_account(mint_b, authority)
            self._transfer(donor_a, reserve_a, token_a_amount, owner)
            self._transfer(donor_b, reserve_b, token_b_amount, owner)

            pool_token = self.create_token(name=f"POOL-{pool_address}")
            self.create_account(pool_token, owner, balance=token_a_amount)

        self.pools[pool_address] = {
            "token_a": reserve_a.address,
            "token_b": reserve_b.address,
            "pool_token": pool_token,
            "nonce": self.model.random.randrange(256),
            "fee_ratio": fee_ratio,
        }
        self.metrics["pools_created"] += 1
        self._log_event(
            "PoolCreated",
            {"pool": pool_address, "token_a": token_a_amount, "token_b": token_b_amount},
        )
        logger.info(
            "Created pool %s with %d %s / %d %s, fee %s",
            pool_address, token_a_amount, mint_a.name or mint_a.address,
            token_b_amount, mint_b.name or mint_b.address, fee_ratio,
        )
        return self.get_pool(pool_address)

    def get_pool(self, pool_address: str) -> Pool:
        """Read a fresh snapshot of a pool."""
        try:
            record = self.pools[pool_address]
        except KeyError:
            raise SwapProgramError(f"Unknown pool {pool_address}") from None
        return Pool(
            address=pool_address,
            token_a=self.accounts[record["token_a"]],
            token_b=self.accounts[record["token_b"]],
            pool_token=record["pool_token"],
            program_id=self.program_id,
            nonce=record["nonce"],
            fee_ratio=record["fee_ratio"],
        )

    def get_pools(self) -> List[Pool]:
        return [self.get_pool(address) for address in self.pools]

    def deposit(
        self,
        owner: str,
        pool_address: str,
        from_a: AccountRef,
        from_b: AccountRef,
        pool_token_account: AccountRef,
        token_a_amount: int,
    ) -> DepositQuote:
        """
        Deposit ``token_a_amount`` of token A plus the matching token B.

        Either both transfers and the pool-token mint happen, or none do.
        """
        pool = self.get_pool(pool_address)
        quote = pool.deposit_amounts(token_a_amount)
        if self.get_account(pool_token_account).mint != pool.pool_token:
            raise SwapProgramError(f"{_address(pool_token_account)} does not hold pool tokens")

        with self._transaction():
            self._transfer(from_a, pool.token_a, quote.token_a_amount, owner)
            self._transfer(from_b, pool.token_b, quote.token_b_amount, owner)
            self.mint_to(pool_token_account, quote.pool_tokens)

        self.metrics["deposits"] += 1
        self._log_event("Deposit", {"pool": pool_address, "owner": owner, "quote": quote})
        logger.info(
            "Deposit into %s: %d A + %d B for %d pool tokens",
            pool_address, quote.token_a_amount, quote.token_b_amount, quote.pool_tokens,
        )
        return quote

    def withdraw(
        self,
        owner: str,
        pool_address: str,
        pool_token_account: AccountRef,
        to_a: AccountRef,
        to_b: AccountRef,
        pool_tokens: int,
    ) -> Tuple[int, int]:
        """
        Burn ``pool_tokens`` and pay out token A and token B.

        If either payout is rejected the burn is undone as well.
        """
        pool = self.get_pool(pool_address)
        if self.get_account(pool_token_account).mint != pool.pool_token:
            raise SwapProgramError(f"{_address(pool_token_account)} does not hold pool tokens")
        try:
            amount_a, amount_b = compute_withdraw(pool_tokens, pool.reserve_a, pool.reserve_b)
        except ValueError as exc:
            raise SwapProgramError(str(exc)) from exc

        authority = pool.token_a.owner
        with self._transaction():
            self._burn(pool_token_account, pool_tokens, owner)
            self._transfer(pool.token_a, to_a, amount_a, authority)
            self._transfer(pool.token_b, to_b, amount_b, authority)

        self.metrics["withdrawals"] += 1
        self._log_event(
            "Withdrawal",
            {"pool": pool_address, "owner": owner, "pool_tokens": pool_tokens,
             "token_a": amount_a, "token_b": amount_b},
        )
        logger.info(
            "Withdrawal from %s: %d pool tokens for %d A + %d B",
            pool_address, pool_tokens, amount_a, amount_b,
        )
        return amount_a, amount_b

    def swap(
        self,
        owner: str,
        pool_address: str,
        from_account: AccountRef,
        to_account: AccountRef,
        amount: int,
    ) -> SwapQuote:
        """Swap ``amount`` from ``from_account`` into the pool, paying out to ``to_account``."""
        pool = self.get_pool(pool_address)
        source = self.get_account(from_account)
        destination = self.get_account(to_account)
        if not pool.matches(source, destination):
            raise SwapProgramError(
                f"Accounts {source.address} and {destination.address} do not match pool {pool_address}"
            )

        quote = pool.swap_quote(source.mint, amount)
        if quote.output_token == pool.token_a.mint:
            pool_in, pool_out = pool.token_b, pool.token_a
        else:
            pool_in, pool_out = pool.token_a, pool.token_b

        with self._transaction():
            self._transfer(source, pool_in, amount, owner)
            self._transfer(pool_out, destination, quote.net_output, pool_out.owner)

        self.metrics["swaps"] += 1
        self._log_event("Swap", {"pool": pool_address, "owner": owner, "quote": quote})
        logger.info(
            "Swap on %s: %d %s -> %d %s (fee %d)",
            pool_address, amount, quote.input_token.name or quote.input_token.address,
            quote.net_output, quote.output_token.name or quote.output_token.address,
            quote.fee,
        )
        return quote

    # ------------------------------------------------------------------
    # Events and time
    # ------------------------------------------------------------------

    def _log_event(self, event_name: str, payload: Any) -> None:
        self.event_logs.setdefault(self.current_slot, []).append((event_name, payload))

    def get_events(self, slot: Optional[int] = None) -> List[Tuple[str, Any]]:
        """Events of one slot, or of the whole run."""
        if slot is None:
            return [ev for events in self.event_logs.values() for ev in events]
        return self.event_logs.get(slot, [])

    def step(self) -> None:
        """Advance to the next slot."""
        self.current_slot += 1
