"""Protocol-wide constants shared by the markets, vaults and factory"""

from security.cryptography import ZERO_ADDRESS

# Fixed point scale of exchange rates and mantissas
EXP_SCALE = 10**18

MAX_UINT256 = 2**256 - 1

# Distributor enumeration bound copied into new vaults
DEFAULT_MAX_LOOPS_LIMIT = 10

# Initial vToken exchange rate: 1 underlying unit per vToken unit
DEFAULT_EXCHANGE_RATE = EXP_SCALE

__all__ = [
    'EXP_SCALE',
    'MAX_UINT256',
    'ZERO_ADDRESS',
    'DEFAULT_MAX_LOOPS_LIMIT',
    'DEFAULT_EXCHANGE_RATE'
]
