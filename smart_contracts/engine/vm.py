from typing import Dict, List, Any, Optional
import copy
import time
import logging
from dataclasses import dataclass, field

from security.cryptography import CryptoUtils, ZERO_ADDRESS

logger = logging.getLogger(__name__)

# Gas schedule for the operations the VM meters
GAS_COSTS = {
    'TRANSACTION': 21000,
    'CALL': 700,
    'CREATE': 32000,
    'LOG': 375,
}


@dataclass
class ExecutionContext:
    """Context for a single contract call frame"""
    caller: str
    contract_address: str
    value: int = 0
    gas_limit: int = 10000000
    gas_used: int = 0
    block_number: int = 0
    timestamp: int = field(default_factory=lambda: int(time.time()))


class ExecutionResult:
    """Result of a top-level contract execution"""
    def __init__(self, success: bool, return_data: Any = None,
                 gas_used: int = 0, error: str = None, logs: List[Dict] = None,
                 error_name: str = None, exception: Exception = None):
        self.success = success
        self.return_data = return_data
        self.gas_used = gas_used
        self.error = error
        self.error_name = error_name
        self.exception = exception
        self.logs = logs or []


class VMException(Exception):
    """Virtual Machine Exception"""
    pass


class OutOfGasException(VMException):
    """Out of gas exception"""
    pass


class ContractNotFound(VMException):
    """No contract is deployed at the target address"""
    pass


class FunctionNotFound(VMException):
    """The target contract has no external function with that name"""
    pass


class ContractAlreadyDeployed(VMException):
    """Address collision on contract creation"""
    pass


class ContractError(VMException):
    """Named, typed revert raised by contract code.

    Subclasses declare `fields` so callers can read the revert arguments by
    name, e.g. ``err.operation`` on a ``ZeroAmount``.
    """
    fields: tuple = ()

    def __init__(self, *args):
        super().__init__(*args)
        for name, value in zip(self.fields, args):
            setattr(self, name, value)

    @property
    def name(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.name}({', '.join(repr(a) for a in self.args)})"


class SmartContractVM:
    """Smart Contract Virtual Machine

    Hosts contract objects by address, tracks the caller of every frame on a
    call stack and makes every top-level transaction all-or-nothing: storage
    of every contract, created contracts, nonces and emitted events are
    restored when the transaction raises.
    """

    def __init__(self):
        self.contracts: Dict[str, 'SmartContract'] = {}
        self.nonces: Dict[str, int] = {}
        self.logs: List[Dict] = []
        self.call_stack: List[ExecutionContext] = []
        self.block_number = 0
        self.timestamp = int(time.time())
        self.last_gas_used = 0

    # Deployment

    def deploy_contract(self, contract: 'SmartContract', deployer: str,
                        address: Optional[str] = None) -> str:
        """Deploy a contract at `address`, or at the deployer's next CREATE address"""
        if address is None:
            address = self._next_create_address(deployer)

        if address in self.contracts:
            raise ContractAlreadyDeployed(f"Contract already deployed at {address}")

        self._consume_gas(GAS_COSTS['CREATE'])
        self.contracts[address] = contract

        contract.vm = self
        contract.address = address

        logger.debug(f"{type(contract).__name__} deployed at {address} by {deployer}")
        return address

    def create2(self, deployer: str, salt: bytes, init_code_hash: bytes,
                contract: 'SmartContract') -> str:
        """Deploy a contract at its counterfactual address"""
        address = CryptoUtils.create2_address(deployer, salt, init_code_hash)
        return self.deploy_contract(contract, deployer, address)

    def _next_create_address(self, deployer: str) -> str:
        nonce = self.nonces.get(deployer, 0)
        self.nonces[deployer] = nonce + 1
        return CryptoUtils.create_address(deployer, nonce)

    def is_contract(self, address: str) -> bool:
        """True when code is deployed at the address"""
        return address in self.contracts

    def get_contract(self, address: str) -> Optional['SmartContract']:
        return self.contracts.get(address)

    # Execution

    @property
    def msg_sender(self) -> str:
        """Caller of the frame currently executing"""
        if self.call_stack:
            return self.call_stack[-1].caller
        return ZERO_ADDRESS

    def call(self, caller: str, contract_address: str, function_name: str,
             *args, value: int = 0) -> Any:
        """Invoke an external function with `caller` as msg.sender"""
        contract = self.contracts.get(contract_address)
        if contract is None:
            raise ContractNotFound(f"Contract not found: {contract_address}")

        if function_name.startswith('_'):
            raise FunctionNotFound(f"Function {function_name} is not external")

        func = getattr(contract, function_name, None)
        if func is None or not callable(func):
            raise FunctionNotFound(f"Function {function_name} not found on {contract_address}")

        parent = self.call_stack[0] if self.call_stack else None
        context = ExecutionContext(
            caller=caller,
            contract_address=contract_address,
            value=value,
            gas_limit=parent.gas_limit if parent else ExecutionContext.gas_limit,
            block_number=self.block_number,
            timestamp=self.timestamp
        )

        self.call_stack.append(context)
        try:
            self._consume_gas(GAS_COSTS['CALL'])
            return func(*args)
        finally:
            self.call_stack.pop()

    def transact(self, caller: str, contract_address: str, function_name: str,
                 *args, value: int = 0, gas_limit: Optional[int] = None) -> Any:
        """Run a top-level transaction, reverting every state change on failure"""
        if self.call_stack:
            return self.call(caller, contract_address, function_name, *args, value=value)

        snapshot = self._snapshot()
        self.block_number += 1
        self.timestamp = max(self.timestamp + 1, int(time.time()))

        root = ExecutionContext(
            caller=caller,
            contract_address=contract_address,
            gas_limit=gas_limit or ExecutionContext.gas_limit,
            block_number=self.block_number,
            timestamp=self.timestamp
        )
        self.call_stack.append(root)
        try:
            self._consume_gas(GAS_COSTS['TRANSACTION'])
            return self.call(caller, contract_address, function_name, *args, value=value)
        except Exception:
            self._restore(snapshot)
            raise
        finally:
            self.last_gas_used = root.gas_used
            self.call_stack.clear()

    def execute_contract(self, contract_address: str, function_name: str,
                         args: List[Any], context: ExecutionContext) -> ExecutionResult:
        """Execute a transaction and report the outcome instead of raising"""
        first_log = len(self.logs)
        try:
            result = self.transact(context.caller, contract_address, function_name, *args,
                                   value=context.value, gas_limit=context.gas_limit)
            context.gas_used = self.last_gas_used
            return ExecutionResult(
                success=True,
                return_data=result,
                gas_used=context.gas_used,
                logs=self.logs[first_log:]
            )
        except OutOfGasException as e:
            return ExecutionResult(False, error="Out of gas", gas_used=context.gas_limit,
                                   error_name=type(e).__name__, exception=e)
        except VMException as e:
            context.gas_used = self.last_gas_used
            return ExecutionResult(False, error=str(e), gas_used=context.gas_used,
                                   error_name=type(e).__name__, exception=e)

    def _consume_gas(self, amount: int):
        """Charge gas to the transaction currently executing"""
        if not self.call_stack:
            return
        root = self.call_stack[0]
        root.gas_used += amount
        if root.gas_used > root.gas_limit:
            raise OutOfGasException("Gas limit exceeded")

    # Events

    def emit(self, contract_address: str, event_name: str, data: Dict[str, Any]):
        self._consume_gas(GAS_COSTS['LOG'])
        self.logs.append({
            'event': event_name,
            'contract': contract_address,
            'data': data,
            'block_number': self.block_number,
            'timestamp': self.timestamp
        })

    def get_events(self, event_name: str = None, contract_address: str = None,
                   since: int = 0) -> List[Dict]:
        """Filter the event log by name and emitting contract"""
        events = self.logs[since:]
        if event_name:
            events = [log for log in events if log['event'] == event_name]
        if contract_address:
            events = [log for log in events if log['contract'] == contract_address]
        return events

    # Snapshots

    def _snapshot(self) -> Dict[str, Any]:
        return {
            'contracts': dict(self.contracts),
            'storage': {address: contract._snapshot_storage()
                        for address, contract in self.contracts.items()},
            'nonces': dict(self.nonces),
            'logs': len(self.logs),
            'block_number': self.block_number,
            'timestamp': self.timestamp
        }

    def _restore(self, snapshot: Dict[str, Any]):
        self.contracts = snapshot['contracts']
        for address, storage in snapshot['storage'].items():
            self.contracts[address]._restore_storage(storage)
        self.nonces = snapshot['nonces']
        del self.logs[snapshot['logs']:]
        self.block_number = snapshot['block_number']
        self.timestamp = snapshot['timestamp']


class SmartContract:
    """Base class for smart contracts

    Everything in the instance ``__dict__`` except the VM handle is contract
    storage and takes part in transaction snapshots, so contracts refer to
    each other by address rather than by object.
    """

    _RUNTIME_FIELDS = ('vm',)

    def __init__(self):
        self.vm = None  # Will be set by the VM
        self.address = None  # Will be set when deployed

    def _emit_event(self, event_name: str, data: Dict[str, Any]):
        """Emit an event"""
        if self.vm:
            self.vm.emit(self.address, event_name, data)

    def _get_caller(self) -> str:
        """msg.sender of the current frame"""
        if self.vm:
            return self.vm.msg_sender
        return ZERO_ADDRESS

    def _call(self, contract_address: str, function_name: str, *args) -> Any:
        """Call another contract with this contract as msg.sender"""
        return self.vm.call(self.address, contract_address, function_name, *args)

    def _is_contract(self, address: str) -> bool:
        return self.vm is not None and self.vm.is_contract(address)

    def _block_number(self) -> int:
        return self.vm.block_number if self.vm else 0

    def _block_timestamp(self) -> int:
        return self.vm.timestamp if self.vm else int(time.time())

    def _snapshot_storage(self) -> Dict[str, Any]:
        return copy.deepcopy({key: value for key, value in self.__dict__.items()
                              if key not in self._RUNTIME_FIELDS})

    def _restore_storage(self, storage: Dict[str, Any]):
        # Mutate in place: proxies share this dict with implementation views
        runtime = {key: self.__dict__[key] for key in self._RUNTIME_FIELDS if key in self.__dict__}
        self.__dict__.clear()
        self.__dict__.update(storage)
        self.__dict__.update(runtime)
