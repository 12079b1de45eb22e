from typing import Dict, List
from dataclasses import dataclass
import logging

from ..engine import SmartContract
from ..constants import ZERO_ADDRESS
from ..errors import OwnableUnauthorizedAccount, ZeroAddressNotAllowed, InvalidMarket

logger = logging.getLogger(__name__)


@dataclass
class VenusPool:
    """Isolated pool registration record"""
    name: str
    creator: str
    comptroller: str
    block_posted: int
    timestamp_posted: int


class PoolRegistry(SmartContract):
    """Source of truth for isolated pools and the market of each (pool, asset)"""

    def __init__(self, owner: str):
        super().__init__()
        self.owner = owner
        self.pools: Dict[str, VenusPool] = {}
        self.v_tokens: Dict[str, Dict[str, str]] = {}  # comptroller -> asset -> vToken

    def add_pool(self, name: str, comptroller: str) -> bool:
        caller = self._get_caller()
        if caller != self.owner:
            raise OwnableUnauthorizedAccount(caller)

        if comptroller == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        self.pools[comptroller] = VenusPool(
            name=name,
            creator=caller,
            comptroller=comptroller,
            block_posted=self._block_number(),
            timestamp_posted=self._block_timestamp()
        )

        self._emit_event('PoolRegistered', {'comptroller': comptroller, 'name': name})
        logger.info(f"Pool '{name}' registered for comptroller {comptroller}")
        return True

    def add_market(self, v_token: str) -> bool:
        """Register a market under its pool, keyed by underlying asset"""
        caller = self._get_caller()
        if caller != self.owner:
            raise OwnableUnauthorizedAccount(caller)

        comptroller = self._call(v_token, 'comptroller')
        asset = self._call(v_token, 'underlying')

        if comptroller not in self.pools:
            raise InvalidMarket(v_token)

        markets = self.v_tokens.setdefault(comptroller, {})
        if asset in markets:
            raise InvalidMarket(v_token)

        markets[asset] = v_token
        self._emit_event('MarketAdded', {'comptroller': comptroller, 'v_token': v_token})
        return True

    def get_pool_by_comptroller(self, comptroller: str) -> VenusPool:
        pool = self.pools.get(comptroller)
        if pool is None:
            return VenusPool(name="", creator=ZERO_ADDRESS, comptroller=ZERO_ADDRESS,
                             block_posted=0, timestamp_posted=0)
        return pool

    def get_vtoken_for_asset(self, comptroller: str, asset: str) -> str:
        return self.v_tokens.get(comptroller, {}).get(asset, ZERO_ADDRESS)

    def get_all_pools(self) -> List[VenusPool]:
        return list(self.pools.values())
