"""Lending Market Contracts

Simulated money markets the vaults wrap:

- VToken markets returning error codes from mint / redeem
- Core and isolated pool comptrollers, rewards distributors
- Pool registry for isolated pools
- Protocol share reserve collecting wrapper rewards
"""

from .vtoken import VToken, VTokenError
from .comptroller import (
    Comptroller,
    CoreComptroller,
    PoolComptroller,
    RewardsDistributor,
    Market,
    Action,
    ComptrollerError
)
from .pool_registry import PoolRegistry, VenusPool
from .protocol_share_reserve import ProtocolShareReserve, IncomeType

__all__ = [
    'VToken',
    'VTokenError',
    'Comptroller',
    'CoreComptroller',
    'PoolComptroller',
    'RewardsDistributor',
    'Market',
    'Action',
    'ComptrollerError',
    'PoolRegistry',
    'VenusPool',
    'ProtocolShareReserve',
    'IncomeType'
]
