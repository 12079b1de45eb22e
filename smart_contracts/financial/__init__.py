"""Financial Smart Contracts Module

Fungible tokens used as vault underlyings and as reward tokens.
"""

from .token import ERC20Token, TokenInfo

__all__ = [
    'ERC20Token',
    'TokenInfo'
]
