"""Smart Contracts Module

Tokenized vaults over lending markets, run on an in-process contract VM:

- VM: addresses, call stack, events and all-or-nothing transactions
- Engine: deployment, transactions and receipts
- Markets: vTokens, comptrollers, pool registry, protocol share reserve
- ERC4626: vault accounting, reward claiming and the deterministic factory

Components:
- create_vault_ecosystem: deploys a complete, wired environment
"""

from typing import Dict, Any, Optional
import logging

from .constants import (
    EXP_SCALE,
    MAX_UINT256,
    ZERO_ADDRESS,
    DEFAULT_MAX_LOOPS_LIMIT,
    DEFAULT_EXCHANGE_RATE
)
from .engine import SmartContractVM, SmartContractEngine, get_engine
from .financial.token import ERC20Token
from .access import AccessControlManager
from .markets import (
    VToken,
    CoreComptroller,
    PoolComptroller,
    RewardsDistributor,
    PoolRegistry,
    ProtocolShareReserve
)
from .erc4626 import VenusERC4626Core, VenusERC4626Isolated, VenusERC4626Factory

__all__ = [
    'SmartContractVM',
    'SmartContractEngine',
    'ERC20Token',
    'VenusERC4626Core',
    'VenusERC4626Isolated',
    'VenusERC4626Factory',
    'get_engine',
    'create_vault_ecosystem',
    'CONFIG'
]

__version__ = '1.0.0'
__author__ = 'Smart Contract Platform Team'

logger = logging.getLogger(__name__)

# Privileged functions gated by the access control manager
PRIVILEGED_FUNCTIONS = [
    "setRewardRecipient(address)",
    "setMaxLoopsLimit(uint256)"
]

# Markets deployed by create_vault_ecosystem: (symbol, underlying decimals)
CORE_MARKETS = [("USDT", 18), ("BTCB", 18)]
ISOLATED_MARKETS = [("USDD", 18), ("HAY", 18)]

# Reward token float given to the comptroller and the distributor
REWARD_FLOAT = 1_000_000 * EXP_SCALE

# Export configuration
CONFIG = {
    'EXP_SCALE': EXP_SCALE,
    'MAX_UINT256': MAX_UINT256,
    'ZERO_ADDRESS': ZERO_ADDRESS,
    'DEFAULT_MAX_LOOPS_LIMIT': DEFAULT_MAX_LOOPS_LIMIT,
    'DEFAULT_EXCHANGE_RATE': DEFAULT_EXCHANGE_RATE,
    'PRIVILEGED_FUNCTIONS': PRIVILEGED_FUNCTIONS,
    'CORE_MARKETS': CORE_MARKETS,
    'ISOLATED_MARKETS': ISOLATED_MARKETS,
    'REWARD_FLOAT': REWARD_FLOAT
}


def create_vault_ecosystem(owner: str, engine: Optional[SmartContractEngine] = None,
                           max_loops_limit: int = DEFAULT_MAX_LOOPS_LIMIT) -> Dict[str, Any]:
    """Deploy markets, pools, access control and the vault factory

    Args:
        owner: Account owning every deployed contract
        engine: Engine to deploy into, a fresh one when omitted
        max_loops_limit: Distributor bound copied into new vaults

    Returns:
        dict: The engine and the address of every deployed contract
    """
    engine = engine or SmartContractEngine()

    acm = engine.deploy(AccessControlManager, owner, owner)
    for signature in PRIVILEGED_FUNCTIONS:
        engine.transact(owner, acm, 'give_call_permission', ZERO_ADDRESS, signature, owner)

    xvs = engine.deploy(ERC20Token, owner, "Venus", "XVS", 18, 0, owner)
    psr = engine.deploy(ProtocolShareReserve, owner, owner)
    core_comptroller = engine.deploy(CoreComptroller, owner, owner, xvs)
    pool_registry = engine.deploy(PoolRegistry, owner, owner)
    pool_comptroller = engine.deploy(PoolComptroller, owner, owner, pool_registry)
    engine.transact(owner, pool_registry, 'add_pool', "Stablecoins", pool_comptroller)

    distributor = engine.deploy(RewardsDistributor, owner, xvs, owner)
    engine.transact(owner, pool_comptroller, 'add_rewards_distributor', distributor)

    engine.transact(owner, xvs, 'mint', core_comptroller, REWARD_FLOAT)
    engine.transact(owner, xvs, 'mint', distributor, REWARD_FLOAT)

    tokens = {}
    core_markets = {}
    isolated_markets = {}

    for symbol, decimals in CORE_MARKETS:
        token = engine.deploy(ERC20Token, owner, symbol, symbol, decimals, 0, owner)
        v_token = engine.deploy(VToken, owner, token, core_comptroller, f"Venus {symbol}", f"v{symbol}", owner)
        engine.transact(owner, core_comptroller, 'support_market', v_token)
        tokens[symbol] = token
        core_markets[symbol] = v_token

    for symbol, decimals in ISOLATED_MARKETS:
        token = engine.deploy(ERC20Token, owner, symbol, symbol, decimals, 0, owner)
        v_token = engine.deploy(VToken, owner, token, pool_comptroller,
                                f"Venus {symbol} (Stablecoins)", f"v{symbol}_Stablecoins", owner)
        engine.transact(owner, pool_comptroller, 'support_market', v_token)
        engine.transact(owner, pool_registry, 'add_market', v_token)
        tokens[symbol] = token
        isolated_markets[symbol] = v_token

    factory = engine.deploy(VenusERC4626Factory, owner)
    engine.transact(owner, factory, 'initialize', acm, pool_registry, core_comptroller, psr,
                    VenusERC4626Core, VenusERC4626Isolated, max_loops_limit)

    logger.info(f"Vault ecosystem deployed; factory at {factory}")

    return {
        'engine': engine,
        'owner': owner,
        'access_control_manager': acm,
        'xvs': xvs,
        'protocol_share_reserve': psr,
        'core_comptroller': core_comptroller,
        'pool_registry': pool_registry,
        'pool_comptroller': pool_comptroller,
        'rewards_distributor': distributor,
        'factory': factory,
        'tokens': tokens,
        'core_markets': core_markets,
        'isolated_markets': isolated_markets
    }
