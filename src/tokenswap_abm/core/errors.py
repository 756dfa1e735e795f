class PoolError(ValueError):
    """Base class for queries a pool snapshot cannot answer."""


class InvalidAsset(PoolError):
    """The given token is neither of the pool's two reserve tokens."""

    def __init__(self, token, pool_address=None):
        self.token = token
        self.pool_address = pool_address
        where = f" {pool_address}" if pool_address is not None else ""
        super().__init__(f"Token {token} is not a reserve token of pool{where}")


class EmptyPool(PoolError):
    """The reserve a swap would draw its price from is zero."""

    def __init__(self, token, pool_address=None):
        self.token = token
        self.pool_address = pool_address
        where = f" {pool_address}" if pool_address is not None else ""
        super().__init__(f"Pool{where} holds no {token}; price is undefined")
