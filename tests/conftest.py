import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from tokenswap_abm.core.pool import Pool
from tokenswap_abm.core.token import Token, TokenAccount

TOKEN_A = Token("mint-a", name="A")
TOKEN_B = Token("mint-b", name="B")
POOL_TOKEN = Token("mint-pool", name="POOL")


@pytest.fixture
def make_pool():
    def _make(reserve_a=1000, reserve_b=2000, fee_ratio="1/4"):
        return Pool(
            address="pool-1",
            token_a=TokenAccount("reserve-a", TOKEN_A, reserve_a, owner="authority"),
            token_b=TokenAccount("reserve-b", TOKEN_B, reserve_b, owner="authority"),
            pool_token=POOL_TOKEN,
            program_id="program",
            nonce=254,
            fee_ratio=fee_ratio,
        )

    return _make


@pytest.fixture
def pool(make_pool):
    """The reference pool: 1000 A, 2000 B, fee 1/4."""
    return make_pool()
