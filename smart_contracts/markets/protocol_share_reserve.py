from typing import Dict, List, Any
from enum import IntEnum
import logging

from ..engine import SmartContract
from ..constants import ZERO_ADDRESS
from ..errors import ZeroAddressNotAllowed

logger = logging.getLogger(__name__)


class IncomeType(IntEnum):
    """Source of funds reported to the reserve"""
    SPREAD = 0
    LIQUIDATION = 1
    ERC4626_WRAPPER_REWARDS = 2


class ProtocolShareReserve(SmartContract):
    """Collects protocol income and records where each increase came from.

    Senders transfer tokens first and then call ``update_assets_state``; the
    reserve books whatever its balance grew by since the last update.
    """

    def __init__(self, owner: str):
        super().__init__()
        self.owner = owner
        self.asset_reserves: Dict[str, Dict[str, int]] = {}  # comptroller -> asset -> amount
        self.total_asset_reserve: Dict[str, int] = {}
        self.state_updates: List[Dict[str, Any]] = []

    def update_assets_state(self, comptroller: str, asset: str, income_type: int) -> int:
        if comptroller == ZERO_ADDRESS or asset == ZERO_ADDRESS:
            raise ZeroAddressNotAllowed()

        income_type = IncomeType(income_type)
        balance = self._call(asset, 'balance_of', self.address)
        amount = balance - self.total_asset_reserve.get(asset, 0)

        self.state_updates.append({
            'caller': self._get_caller(),
            'comptroller': comptroller,
            'asset': asset,
            'income_type': income_type,
            'amount': amount
        })

        if amount > 0:
            reserves = self.asset_reserves.setdefault(comptroller, {})
            reserves[asset] = reserves.get(asset, 0) + amount
            self.total_asset_reserve[asset] = balance

            self._emit_event('AssetsReservesUpdated', {
                'comptroller': comptroller,
                'asset': asset,
                'amount': amount,
                'income_type': int(income_type)
            })
            logger.info(f"Reserve booked {amount} of {asset} ({income_type.name})")

        return amount

    def get_pool_asset_reserve(self, comptroller: str, asset: str) -> int:
        return self.asset_reserves.get(comptroller, {}).get(asset, 0)
