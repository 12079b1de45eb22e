"""ERC-4626 Vaults

Tokenized vaults over Venus markets:

- ERC4626: share ledger and rounding-safe conversions
- VenusERC4626Core / VenusERC4626Isolated: per-kind reward claiming
- VenusERC4626Factory: deterministic, one vault per market and kind
"""

from .base import ERC4626, Rounding, mul_div
from .venus_erc4626 import VenusERC4626, RewardRecipient, RecipientKind
from .core import VenusERC4626Core
from .isolated import VenusERC4626Isolated
from .factory import VenusERC4626Factory

__all__ = [
    'ERC4626',
    'Rounding',
    'mul_div',
    'VenusERC4626',
    'RewardRecipient',
    'RecipientKind',
    'VenusERC4626Core',
    'VenusERC4626Isolated',
    'VenusERC4626Factory'
]
