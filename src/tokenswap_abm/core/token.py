from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Token:
    """
    A token mint.

    Attributes:
        address (str): Mint address; two tokens are equal iff their addresses are.
        decimals (int): Number of decimal places of the smallest unit.
        name (Optional[str]): Human-readable symbol, display only.
    """

    address: str
    decimals: int = field(default=0, compare=False)
    name: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        label = f" ({self.name})" if self.name else ""
        return f"Token Address: {self.address}{label}, Decimals: {self.decimals}"

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "decimals": self.decimals, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        return cls(
            address=str(data["address"]),
            decimals=int(data.get("decimals", 0)),
            name=data.get("name"),
        )


@dataclass(frozen=True)
class TokenAccount:
    """
    A holder's balance of one token mint, read at a point in time.

    Attributes:
        address (str): Account address.
        mint (Token): The token held.
        balance (int): Balance in the token's smallest unit.
        owner (Optional[str]): Owner of the account, if known.
    """

    address: str
    mint: Token
    balance: int
    owner: Optional[str] = None

    def __post_init__(self):
        if self.balance < 0:
            raise ValueError(f"Account balance must be >= 0, got {self.balance}")

    def with_balance(self, balance: int) -> "TokenAccount":
        """Return a copy of this account holding ``balance``."""
        return replace(self, balance=balance)

    def __str__(self) -> str:
        return (
            f"Account: {self.address}, Mint: {self.mint.address}, "
            f"Balance: {self.balance}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "mint": self.mint.to_dict(),
            "balance": self.balance,
            "owner": self.owner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenAccount":
        return cls(
            address=str(data["address"]),
            mint=Token.from_dict(data["mint"]),
            balance=int(data["balance"]),
            owner=data.get("owner"),
        )
