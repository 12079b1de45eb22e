"""Smart Contract Engine Module

This module provides the core infrastructure for executing smart contracts,
including:

- Virtual Machine (VM) with a call stack and all-or-nothing transactions
- CREATE / CREATE2 style contract addressing
- Smart Contract Engine for deployment, transactions and receipts
- Upgradeable beacons and beacon proxies
"""

from .vm import (
    SmartContractVM,
    SmartContract,
    ExecutionContext,
    ExecutionResult,
    VMException,
    OutOfGasException,
    ContractNotFound,
    FunctionNotFound,
    ContractAlreadyDeployed,
    ContractError
)

from .engine import (
    SmartContractEngine,
    ContractRegistry,
    ContractMetadata,
    TransactionReceipt,
    get_engine,
    reset_engine
)

from .proxy import UpgradeableBeacon, BeaconProxy, InvalidImplementation

__all__ = [
    # VM classes
    'SmartContractVM',
    'SmartContract',
    'ExecutionContext',
    'ExecutionResult',
    'VMException',
    'OutOfGasException',
    'ContractNotFound',
    'FunctionNotFound',
    'ContractAlreadyDeployed',
    'ContractError',

    # Engine classes
    'SmartContractEngine',
    'ContractRegistry',
    'ContractMetadata',
    'TransactionReceipt',
    'get_engine',
    'reset_engine',

    # Proxies
    'UpgradeableBeacon',
    'BeaconProxy',
    'InvalidImplementation'
]
