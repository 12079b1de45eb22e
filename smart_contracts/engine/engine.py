from typing import Dict, List, Any, Optional, Tuple, Type
import time
from dataclasses import dataclass
import threading
import logging

from security.cryptography import CryptoUtils
from .vm import SmartContractVM, SmartContract, ExecutionContext

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class ContractMetadata:
    """Metadata for deployed contracts"""
    address: str
    name: str
    deployer: str
    deployment_block: int
    deployment_time: int
    is_active: bool = True


@dataclass
class TransactionReceipt:
    """Receipt for contract transactions"""
    transaction_hash: str
    contract_address: str
    function_name: str
    caller: str
    block_number: int
    gas_used: int
    success: bool
    return_data: Any
    logs: List[Dict]
    timestamp: int
    error: Optional[str] = None
    error_name: Optional[str] = None


class ContractRegistry:
    """Registry of contracts deployed through the engine"""

    def __init__(self):
        self.contracts: Dict[str, ContractMetadata] = {}
        self.lock = threading.RLock()

    def register_contract(self, metadata: ContractMetadata):
        """Register a new contract"""
        with self.lock:
            self.contracts[metadata.address] = metadata
            logger.info(f"Contract {metadata.name} registered at {metadata.address}")

    def get_metadata(self, address: str) -> Optional[ContractMetadata]:
        """Get contract metadata by address"""
        return self.contracts.get(address)


class SmartContractEngine:
    """Deploys contracts and runs transactions one at a time against a VM"""

    def __init__(self, vm: Optional[SmartContractVM] = None):
        self.vm = vm or SmartContractVM()
        self.registry = ContractRegistry()
        self.transaction_history: List[TransactionReceipt] = []
        # Single writer: one transaction at a time
        self.lock = threading.RLock()
        self.default_gas_limit = 10000000

    def deploy_contract(self, contract_class: Type[SmartContract],
                        deployer: str, constructor_args: List[Any] = None) -> Tuple[str, TransactionReceipt]:
        """Deploy a smart contract"""
        with self.lock:
            try:
                contract_instance = contract_class(*(constructor_args or []))
                contract_address = self.vm.deploy_contract(contract_instance, deployer)
            except Exception as e:
                logger.error(f"Contract deployment failed: {e}")
                raise

            metadata = ContractMetadata(
                address=contract_address,
                name=contract_class.__name__,
                deployer=deployer,
                deployment_block=self.vm.block_number,
                deployment_time=int(time.time())
            )
            self.registry.register_contract(metadata)

            receipt = self._record(
                caller=deployer,
                contract_address=contract_address,
                function_name="constructor",
                success=True,
                return_data=contract_address,
                logs=[]
            )

            logger.info(f"Contract {contract_class.__name__} deployed at {contract_address}")
            return contract_address, receipt

    def deploy(self, contract_class: Type[SmartContract], deployer: str, *constructor_args) -> str:
        """Deploy and return only the address"""
        address, _ = self.deploy_contract(contract_class, deployer, list(constructor_args))
        return address

    def transact(self, caller: str, contract_address: str, function_name: str, *args,
                 value: int = 0, gas_limit: int = None) -> Any:
        """Execute a state-changing call, re-raising typed contract errors"""
        receipt = self.call_contract(contract_address, function_name, list(args), caller,
                                     value=value, gas_limit=gas_limit, raise_errors=True)
        return receipt.return_data

    def call_contract(self, contract_address: str, function_name: str,
                      args: List[Any], caller: str, value: int = 0,
                      gas_limit: int = None, raise_errors: bool = False) -> TransactionReceipt:
        """Call a contract function and record a receipt"""
        with self.lock:
            context = ExecutionContext(
                caller=caller,
                contract_address=contract_address,
                value=value,
                gas_limit=gas_limit or self.default_gas_limit
            )

            result = self.vm.execute_contract(contract_address, function_name, args, context)

            receipt = self._record(
                caller=caller,
                contract_address=contract_address,
                function_name=function_name,
                success=result.success,
                return_data=result.return_data,
                logs=result.logs,
                gas_used=result.gas_used,
                error=result.error,
                error_name=result.error_name
            )

            if result.success:
                logger.info(f"Contract call successful: {contract_address}.{function_name}")
            else:
                logger.error(f"Contract call failed: {contract_address}.{function_name}: {result.error}")
                if raise_errors:
                    raise result.exception

            return receipt

    def view(self, contract_address: str, function_name: str, *args) -> Any:
        """Read-only call; nothing is recorded"""
        with self.lock:
            return self.vm.call(self.vm.msg_sender, contract_address, function_name, *args)

    def get_contract(self, contract_address: str) -> Optional[SmartContract]:
        return self.vm.get_contract(contract_address)

    def get_events(self, event_name: str = None, contract_address: str = None) -> List[Dict]:
        return self.vm.get_events(event_name, contract_address)

    def get_transaction_history(self, address: str = None,
                                contract_address: str = None) -> List[TransactionReceipt]:
        """Get transaction history with optional filtering"""
        history = self.transaction_history

        if address:
            history = [tx for tx in history if tx.caller == address]

        if contract_address:
            history = [tx for tx in history if tx.contract_address == contract_address]

        return history

    def _record(self, caller: str, contract_address: str, function_name: str,
                success: bool, return_data: Any, logs: List[Dict], gas_used: int = 0,
                error: str = None, error_name: str = None) -> TransactionReceipt:
        receipt = TransactionReceipt(
            transaction_hash=self._generate_transaction_hash(caller, contract_address, function_name),
            contract_address=contract_address,
            function_name=function_name,
            caller=caller,
            block_number=self.vm.block_number,
            gas_used=gas_used,
            success=success,
            return_data=return_data,
            logs=logs,
            timestamp=self.vm.timestamp,
            error=error,
            error_name=error_name
        )
        self.transaction_history.append(receipt)
        return receipt

    def _generate_transaction_hash(self, caller: str, contract_address: str,
                                   function_name: str = "") -> str:
        """Generate unique transaction hash"""
        data = f"{caller}{contract_address}{function_name}{len(self.transaction_history)}{self.vm.block_number}"
        return "0x" + CryptoUtils.hash_sha256_hex(data.encode())

    def get_engine_stats(self) -> Dict[str, Any]:
        """Get engine statistics"""
        return {
            "total_contracts": len(self.vm.contracts),
            "registered_contracts": len(self.registry.contracts),
            "block_number": self.vm.block_number,
            "total_transactions": len(self.transaction_history),
            "successful_transactions": len([tx for tx in self.transaction_history if tx.success]),
            "failed_transactions": len([tx for tx in self.transaction_history if not tx.success])
        }


# Global engine instance
_engine_instance = None
_engine_lock = threading.Lock()


def get_engine() -> SmartContractEngine:
    """Get global engine instance (singleton)"""
    global _engine_instance
    if _engine_instance is None:
        with _engine_lock:
            if _engine_instance is None:
                _engine_instance = SmartContractEngine()
    return _engine_instance


def reset_engine():
    """Reset global engine instance (for testing)"""
    global _engine_instance
    with _engine_lock:
        _engine_instance = None
