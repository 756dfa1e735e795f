from typing import Iterable, Optional

import numpy as np
import pandas as pd

from tokenswap_abm.core.pool import Pool, TokenLike

QUOTE_COLUMNS = [
    "amount_in",
    "gross_output",
    "fee",
    "net_output",
    "implied_rate",
    "price_impact",
]


def quote_table(
    pool: Pool,
    input_token: TokenLike,
    amounts: Optional[Iterable[int]] = None,
    points: int = 10,
) -> pd.DataFrame:
    """
    Tabulate swap quotes for a range of trade sizes against one pool snapshot.

    Parameters
    ----------
    pool : Pool
        Snapshot to quote against.
    input_token : Token or TokenAccount
        Token being sold into the pool.
    amounts : iterable of int, optional
        Trade sizes to quote. Defaults to ``points`` geometrically spaced
        sizes from 1 up to the input-side reserve.
    points : int
        Number of default sizes.

    Returns
    -------
    pd.DataFrame
        One row per size with the gross output, fee, net output, implied rate
        and price impact relative to the spot rate.

    Raises
    ------
    InvalidAsset
        If ``input_token`` is not one of the pool's tokens.
    EmptyPool
        If the input-side reserve is zero.
    """
    first = pool.swap_quote(input_token, 0)
    reverse = first.input_token == pool.token_b.mint
    reserve_in = pool.reserve_b if reverse else pool.reserve_a

    if amounts is None:
        grid = np.geomspace(1, max(reserve_in, 1), num=points)
        amounts = np.unique(np.rint(grid).astype(np.int64))

    spot = pool.rate()
    if reverse:
        spot = 1 / spot if spot else 0.0

    rows = []
    for amount in amounts:
        amount = int(amount)
        quote = pool.swap_quote(input_token, amount)
        implied = pool.implied_rate(input_token, amount)
        impact = 1 - implied / spot if spot and amount > 0 else 0.0
        rows.append(
            (amount, quote.gross_output, quote.fee, quote.net_output, implied, impact)
        )
    return pd.DataFrame(rows, columns=QUOTE_COLUMNS)
