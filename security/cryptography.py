import hashlib
from typing import Optional, Union
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.exceptions import InvalidSignature

ADDRESS_LENGTH = 20  # bytes
ZERO_ADDRESS = "0x" + "00" * ADDRESS_LENGTH


class CryptoUtils:
    """Utility class for hashing and address derivation"""

    @staticmethod
    def hash_sha256(data: bytes) -> bytes:
        """Compute SHA-256 hash"""
        return hashlib.sha256(data).digest()

    @staticmethod
    def hash_sha256_hex(data: bytes) -> str:
        """Compute SHA-256 hash and return as hex string"""
        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def is_address(value: str) -> bool:
        """Check that a value is a 0x-prefixed 20 byte hex address"""
        if not isinstance(value, str) or not value.startswith("0x"):
            return False
        if len(value) != 2 + ADDRESS_LENGTH * 2:
            return False
        try:
            bytes.fromhex(value[2:])
        except ValueError:
            return False
        return True

    @staticmethod
    def address_to_bytes(address: str) -> bytes:
        """Decode a 0x-prefixed address into its 20 raw bytes"""
        if not CryptoUtils.is_address(address):
            raise ValueError(f"Invalid address: {address!r}")
        return bytes.fromhex(address[2:])

    @staticmethod
    def bytes_to_address(data: bytes) -> str:
        """Take the low 20 bytes of a digest as an address"""
        return "0x" + data[-ADDRESS_LENGTH:].hex()

    @staticmethod
    def encode_packed(*values: Union[str, int, bool, bytes]) -> bytes:
        """Tightly pack addresses, booleans, uint256 values and raw bytes"""
        packed = b""
        for value in values:
            if isinstance(value, bool):
                packed += b"\x01" if value else b"\x00"
            elif isinstance(value, int):
                packed += value.to_bytes(32, "big")
            elif isinstance(value, bytes):
                packed += value
            elif CryptoUtils.is_address(value):
                packed += CryptoUtils.address_to_bytes(value)
            else:
                packed += value.encode("utf-8")
        return packed

    @staticmethod
    def create_address(deployer: str, nonce: int) -> str:
        """Address of a contract created by `deployer` with its `nonce`"""
        digest = CryptoUtils.hash_sha256(CryptoUtils.encode_packed(deployer, nonce))
        return CryptoUtils.bytes_to_address(digest)

    @staticmethod
    def create2_address(deployer: str, salt: bytes, init_code_hash: bytes) -> str:
        """Counterfactual address: H(0xff ++ deployer ++ salt ++ H(init_code))"""
        if len(salt) != 32 or len(init_code_hash) != 32:
            raise ValueError("salt and init code hash must be 32 bytes")
        digest = CryptoUtils.hash_sha256(
            b"\xff" + CryptoUtils.address_to_bytes(deployer) + salt + init_code_hash
        )
        return CryptoUtils.bytes_to_address(digest)


class ECDSAKeyPair:
    """secp256k1 key pair backing an externally owned account"""

    def __init__(self, private_key: Optional[ec.EllipticCurvePrivateKey] = None):
        if private_key is None:
            self.private_key = ec.generate_private_key(ec.SECP256K1())
        else:
            self.private_key = private_key
        self.public_key = self.private_key.public_key()
        self._address = None

    @classmethod
    def generate(cls) -> 'ECDSAKeyPair':
        """Generate a new ECDSA key pair"""
        return cls()

    def sign(self, message: bytes) -> bytes:
        """Sign a message with the private key"""
        return self.private_key.sign(message, ec.ECDSA(hashes.SHA256()))

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Verify a signature with the public key"""
        try:
            self.public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
            return True
        except InvalidSignature:
            return False

    def get_address(self) -> str:
        """Account address: low 20 bytes of the hashed public key"""
        if self._address:
            return self._address

        numbers = self.public_key.public_numbers()
        public_key_bytes = numbers.x.to_bytes(32, 'big') + numbers.y.to_bytes(32, 'big')

        self._address = CryptoUtils.bytes_to_address(CryptoUtils.hash_sha256(public_key_bytes))
        return self._address


def random_address() -> str:
    """Fresh externally owned account address"""
    return ECDSAKeyPair.generate().get_address()
