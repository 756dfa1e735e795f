from mesa import Agent
from typing import Callable, Optional
import logging

import numpy as np

logger = logging.getLogger(__name__)


class TraderAgent(Agent):
    """
    Trader that swaps a random amount in a random direction every step.

    Each step reads a fresh pool snapshot, quotes the swap against it, and
    submits the swap to the program. The snapshot is dropped afterwards.

    Attributes:
        program (SwapProgramAgent): Program holding the pool and accounts.
        pool_address (str): Pool the trader swaps against.
        account_a (str): Trader's token A account address.
        account_b (str): Trader's token B account address.
        max_trade_fraction (float): Largest trade as a fraction of the input reserve.
        on_swap (Callable): Optional hook called with (agent, quote).
    """

    def __init__(
        self,
        model,
        program,
        pool_address: str,
        account_a: Optional[str] = None,
        account_b: Optional[str] = None,
        max_trade_fraction: float = 0.01,
        seed: Optional[int] = None,
        on_swap: Optional[Callable] = None,
    ):
        super().__init__(model)
        self.program = program
        self.pool_address = pool_address
        self.account_a = account_a
        self.account_b = account_b
        self.max_trade_fraction = float(max_trade_fraction)
        self.on_swap = on_swap
        self._rng = np.random.default_rng(
            seed if seed is not None else self.model.random.getrandbits(32)
        )

    @property
    def owner(self) -> str:
        return f"trader-{self.unique_id}"

    def step(self):
        pool = self.program.get_pool(self.pool_address)
        if self._rng.random() < 0.5:
            source, destination = self.account_a, self.account_b
        else:
            source, destination = self.account_b, self.account_a

        held = self.program.get_account(source)
        reserve_in = pool.reserve_a if held.mint == pool.token_a.mint else pool.reserve_b
        cap = min(held.balance, int(reserve_in * self.max_trade_fraction))
        if cap < 1:
            logger.debug("%s has nothing to swap from %s", self.owner, source)
            return

        amount = int(self._rng.integers(1, cap, endpoint=True))
        expected = pool.swap_quote(held.mint, amount)
        quote = self.program.swap(self.owner, self.pool_address, source, destination, amount)
        if quote.net_output != expected.net_output:
            logger.warning(
                "%s quoted %d but received %d; snapshot was stale",
                self.owner, expected.net_output, quote.net_output,
            )

        self.model.metrics["swaps"].append({
            "step": self.model.steps,
            "trader": self.owner,
            "input_token": quote.input_token.address,
            "amount_in": quote.amount_in,
            "net_output": quote.net_output,
            "fee": quote.fee,
            "implied_rate": pool.implied_rate(held.mint, amount),
        })
        if self.on_swap:
            self.on_swap(self, quote)
