"""
ModredIP contract client for Etherlink.

This module provides the ModredIPClient class that reads IP assets and
licenses from the ModredIP contract and executes its write functions with
the server-side signer.

Module Input:
    - Contract address (per call or from settings)
    - Function arguments from the HTTP layer
    - RPC endpoint, chain id and signer key from settings

Module Output:
    - Transaction results (hash, block number, explorer URL)
    - IP asset and license records mirrored from contract storage
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from web3 import Web3
from web3.exceptions import ContractLogicError

from MODRED.core.exceptions import ChainError, ConfigError, ValidationError
from MODRED.core.logging_config import get_logger
from MODRED.core.settings import settings

from .abi import MODRED_IP_ABI, TRANSFER_EVENT_TOPIC

logger = get_logger(__name__)


def _to_hex(value: Union[str, bytes]) -> str:
    """Normalise a hash or topic to a lowercase 0x-prefixed hex string."""
    if isinstance(value, str):
        text = value.lower()
        return text if text.startswith("0x") else f"0x{text}"
    return "0x" + bytes(value).hex()


def extract_token_id(receipt: Dict[str, Any]) -> Optional[int]:
    """
    Extract the minted token id from an ERC-721 Transfer log.

    Args:
        receipt: Transaction receipt as returned by web3

    Returns:
        Optional[int]: Token id from topic 3 of the first Transfer log, or
        None when the receipt holds no such log
    """
    for log in receipt.get("logs") or []:
        topics = log.get("topics") or []
        if len(topics) > 3 and _to_hex(topics[0]) == TRANSFER_EVENT_TOPIC:
            return int(_to_hex(topics[3]), 16)
    return None


class ModredIPClient:
    """
    web3 client for the ModredIP contract.

    Writes follow simulate -> build -> sign -> send -> wait. Any failure on
    that path is raised as ChainError so the HTTP layer can answer with a
    generic error body.

    Attributes:
        w3 (Web3): Connected web3 instance
        default_address (Optional[str]): Contract used when a call passes none
        explorer_base (str): Block explorer base URL
        receipt_timeout (int): Seconds to wait for a receipt
    """

    def __init__(
        self,
        w3: Optional[Web3] = None,
        contract_address: Optional[str] = None,
        private_key: Optional[str] = None,
        explorer_url: Optional[str] = None,
        receipt_timeout: Optional[int] = None,
        chain_id: Optional[int] = None
    ):
        self.w3 = w3 or Web3(Web3.HTTPProvider(settings.rpc_provider_url))
        self.default_address = contract_address or settings.modred_ip_contract
        self.explorer_base = (explorer_url or settings.block_explorer_url).rstrip("/")
        self.receipt_timeout = receipt_timeout or settings.tx_receipt_timeout
        self.chain_id = chain_id or settings.chain_id
        self._private_key = private_key
        self._account = None

        logger.info(
            f"Initialized ModredIPClient (chain {self.chain_id}, "
            f"contract {self.default_address or 'per-request'})"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def explorer_url(self, tx_hash: str) -> str:
        return f"{self.explorer_base}/tx/{tx_hash}"

    def is_connected(self) -> bool:
        try:
            return bool(self.w3.is_connected())
        except Exception as e:
            logger.warning(f"RPC connectivity check failed: {e}")
            return False

    @property
    def account(self):
        """Server-side signer, loaded on first write."""
        if self._account is None:
            key = self._private_key or settings.get_private_key()
            try:
                self._account = self.w3.eth.account.from_key(key)
            except ValueError as e:
                # binascii.Error and bad key lengths both land here
                logger.error(f"Could not load signer key: {e}")
                raise ConfigError(
                    "Invalid WALLET_PRIVATE_KEY",
                    details={"setting": "wallet_private_key", "reason": str(e)}
                )
        return self._account

    def _contract(self, contract_address: Optional[str] = None):
        address = contract_address or self.default_address
        if not address:
            raise ConfigError(
                "No ModredIP contract address provided",
                details={"setting": "modred_ip_contract"}
            )
        if not Web3.is_address(address):
            raise ValidationError(
                f"Invalid contract address: {address}",
                details={"contract_address": address}
            )
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=MODRED_IP_ABI
        )

    def _transact(self, fn, description: str, value: int = 0) -> Tuple[str, Dict[str, Any]]:
        """
        Simulate, sign, send and confirm a contract call.

        Args:
            fn: Bound contract function (contract.functions.x(...))
            description: Label for log lines
            value: Wei to attach (payable functions only)

        Returns:
            Tuple[str, Dict[str, Any]]: (transaction hash, receipt)

        Raises:
            ChainError: If simulation, submission or confirmation fails
            ConfigError: If the signer key is missing or malformed
        """
        account = self.account
        tx_params = {"from": account.address, "value": value}

        try:
            # Reverts surface here with the contract's reason string
            fn.call(tx_params)

            tx = fn.build_transaction({
                **tx_params,
                "nonce": self.w3.eth.get_transaction_count(account.address),
                "chainId": self.chain_id,
            })
            signed = account.sign_transaction(tx)
            raw = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction")
            tx_hash = _to_hex(self.w3.eth.send_raw_transaction(raw))
            logger.info(f"Submitted {description}: {tx_hash}")

            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except ContractLogicError as e:
            logger.error(f"{description} reverted: {e}")
            raise ChainError(
                f"{description} reverted: {e}",
                details={"function": description}
            )
        except Exception as e:
            logger.error(f"Error executing {description}: {e}")
            raise ChainError(
                f"Failed to execute {description}: {e}",
                details={"function": description}
            )

        if receipt.get("status", 1) == 0:
            raise ChainError(
                f"{description} transaction {tx_hash} failed on-chain",
                details={"tx_hash": tx_hash, "function": description}
            )

        logger.info(f"Confirmed {description} in block {receipt.get('blockNumber')}")
        return tx_hash, receipt

    def _result(self, tx_hash: str, receipt: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "txHash": tx_hash,
            "blockNumber": receipt.get("blockNumber"),
            "explorerUrl": self.explorer_url(tx_hash),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def register_ip(
        self,
        ip_hash: str,
        metadata: str,
        is_encrypted: bool,
        contract_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Register an IP asset.

        Args:
            ip_hash (str): Content reference, usually ipfs://cid
            metadata (str): Metadata JSON string or URI stored on-chain
            is_encrypted (bool): Whether the content is encrypted
            contract_address (Optional[str]): Override default contract

        Returns:
            Dict[str, Any]: txHash, ipAssetId (None if no Transfer log),
            blockNumber, explorerUrl

        Example:
            >>> client.register_ip("ipfs://bafk...", '{"name": "Song"}', False)
            {'txHash': '0xa6aa...', 'ipAssetId': 57, 'blockNumber': 5177789, ...}
        """
        contract = self._contract(contract_address)
        logger.info(f"Registering IP {ip_hash} (encrypted={is_encrypted})")

        tx_hash, receipt = self._transact(
            contract.functions.registerIP(ip_hash, metadata, bool(is_encrypted)),
            "registerIP"
        )

        result = self._result(tx_hash, receipt)
        result["ipAssetId"] = extract_token_id(receipt)
        return result

    def mint_license(
        self,
        token_id: int,
        royalty_percentage: int,
        duration: int,
        commercial_use: bool,
        terms: str,
        contract_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """Mint a license over an IP asset. Returns txHash, blockNumber, explorerUrl."""
        contract = self._contract(contract_address)
        logger.info(
            f"Minting license for token {token_id} "
            f"(royalty={royalty_percentage}, duration={duration}s)"
        )

        tx_hash, receipt = self._transact(
            contract.functions.mintLicense(
                int(token_id),
                int(royalty_percentage),
                int(duration),
                bool(commercial_use),
                terms
            ),
            "mintLicense"
        )
        return self._result(tx_hash, receipt)

    def pay_revenue(
        self,
        token_id: int,
        amount: Union[str, float, Decimal],
        contract_address: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Pay revenue to an IP asset.

        Args:
            token_id (int): IP asset id
            amount: Amount in ether (native XTZ), must be positive

        Raises:
            ValidationError: If amount is not a positive number
        """
        try:
            amount_dec = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationError(
                f"Invalid payment amount: {amount}",
                details={"amount": str(amount)}
            )
        if not amount_dec.is_finite() or amount_dec <= 0:
            raise ValidationError(
                "Payment amount must be greater than zero",
                details={"amount": str(amount)}
            )

        contract = self._contract(contract_address)
        value = Web3.to_wei(amount_dec, "ether")
        logger.info(f"Paying {amount_dec} to token {token_id} ({value} wei)")

        tx_hash, receipt = self._transact(
            contract.functions.payRevenue(int(token_id)),
            "payRevenue",
            value=value
        )
        result = self._result(tx_hash, receipt)
        result["amountWei"] = value
        return result

    def claim_royalties(self, token_id: int, contract_address: Optional[str] = None) -> Dict[str, Any]:
        contract = self._contract(contract_address)
        logger.info(f"Claiming royalties for token {token_id}")

        tx_hash, receipt = self._transact(
            contract.functions.claimRoyalties(int(token_id)),
            "claimRoyalties"
        )
        return self._result(tx_hash, receipt)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read(self, fn, description: str):
        try:
            return fn.call()
        except ContractLogicError:
            raise
        except Exception as e:
            logger.error(f"Error reading {description}: {e}")
            raise ChainError(
                f"Failed to read {description}: {e}",
                details={"function": description}
            )

    def next_token_id(self, contract_address: Optional[str] = None) -> int:
        contract = self._contract(contract_address)
        return int(self._read(contract.functions.nextTokenId(), "nextTokenId"))

    def next_license_id(self, contract_address: Optional[str] = None) -> int:
        contract = self._contract(contract_address)
        return int(self._read(contract.functions.nextLicenseId(), "nextLicenseId"))

    def get_ip_asset(self, token_id: int, contract_address: Optional[str] = None) -> Dict[str, Any]:
        contract = self._contract(contract_address)
        raw = self._read(contract.functions.getIPAsset(int(token_id)), f"getIPAsset({token_id})")
        return {
            "tokenId": int(token_id),
            "owner": raw[0],
            "ipHash": raw[1],
            "metadata": raw[2],
            "isEncrypted": raw[3],
            "isDisputed": raw[4],
            "registrationDate": raw[5],
            "totalRevenue": raw[6],
            "royaltyTokens": raw[7],
        }

    def get_license(self, license_id: int, contract_address: Optional[str] = None) -> Dict[str, Any]:
        contract = self._contract(contract_address)
        raw = self._read(contract.functions.getLicense(int(license_id)), f"getLicense({license_id})")
        return {
            "licenseId": int(license_id),
            "licensee": raw[0],
            "tokenId": raw[1],
            "royaltyPercentage": raw[2],
            "duration": raw[3],
            "startDate": raw[4],
            "isActive": raw[5],
            "commercialUse": raw[6],
            "terms": raw[7],
        }

    def _collect(self, upper: int, getter: Callable[[int], Dict[str, Any]], kind: str) -> List[Dict[str, Any]]:
        records = []
        for record_id in range(1, upper):
            try:
                records.append(getter(record_id))
            except ContractLogicError:
                # Burned or never minted
                logger.debug(f"Skipping missing {kind} {record_id}")
        return records

    def list_ip_assets(self, contract_address: Optional[str] = None) -> List[Dict[str, Any]]:
        """Read every IP asset with id in [1, nextTokenId)."""
        upper = self.next_token_id(contract_address)
        return self._collect(
            upper,
            lambda i: self.get_ip_asset(i, contract_address),
            "IP asset"
        )

    def list_licenses(self, contract_address: Optional[str] = None) -> List[Dict[str, Any]]:
        """Read every license with id in [1, nextLicenseId)."""
        upper = self.next_license_id(contract_address)
        return self._collect(
            upper,
            lambda i: self.get_license(i, contract_address),
            "license"
        )
