"""
Token Issuance Service

Request orchestration for programmable tokens: resolve the protocol version,
read the chain through the indexer, plan and build the unsigned transaction.

Errors never escape as exceptions for protocol failures; every operation
returns a TxOutcome that the API layer maps to an HTTP response.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import pycardano as pc

from . import addresses
from .assembler import TransactionAssembler, TransactionPlan
from .blueprint import SubstandardCatalog, SubstandardValidator
from .bootstrap import BootstrapCatalog, BootstrapDescriptor, UtxoRef
from .exceptions import (
    AlreadyRegistered,
    AssemblyFailure,
    BadRequest,
    IndexerUnavailable,
    ProgrammableTokenError,
    WalletEmpty,
)
from .indexer import UtxoIndexer
from .models import MintTokenRequest, RegisterTokenRequest
from .parameterizer import script_hash


logger = logging.getLogger(__name__)

POLICY_ID_SIZE = 28


@dataclass(frozen=True)
class TxOutcome:
    """Result of a transaction-building operation"""

    success: bool
    cbor_hex: Optional[str] = None
    policy_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    status_code: int = 200

    @classmethod
    def ok(cls, cbor_hex: str, policy_id: Optional[str] = None) -> "TxOutcome":
        return cls(success=True, cbor_hex=cbor_hex, policy_id=policy_id)

    @classmethod
    def failed(cls, error: ProgrammableTokenError) -> "TxOutcome":
        return cls(
            success=False,
            policy_id=getattr(error, "policy_id", None),
            error=error.message,
            error_code=error.code,
            status_code=error.status_code,
        )


@dataclass(frozen=True)
class TransferTokenSpec:
    """Transfer of programmable tokens held at a programmable address"""

    sender_address: str
    source_utxo: UtxoRef
    policy_id: str
    asset_name: str
    substandard_name: str
    substandard_transfer_contract_name: str
    recipients: List[Tuple[str, int]] = field(default_factory=list)
    protocol_tx_hash: Optional[str] = None


class TokenIssuanceService:
    """
    Builds register, mint and transfer transactions

    Args:
        catalog: Bootstrap catalog with the deployed protocol versions
        substandards: Substandard validator catalog
        assembler: Transaction assembler
        indexer: UTxO indexer
        builder: Object with ``build(plan) -> pc.Transaction``
        indexer_timeout: Seconds allowed for each indexer read
    """

    def __init__(
        self,
        catalog: BootstrapCatalog,
        substandards: SubstandardCatalog,
        assembler: TransactionAssembler,
        indexer: UtxoIndexer,
        builder,
        indexer_timeout: float = 10.0,
    ):
        self.catalog = catalog
        self.substandards = substandards
        self.assembler = assembler
        self.indexer = indexer
        self.builder = builder
        self.indexer_timeout = indexer_timeout

    async def _read(self, query: Callable, *args):
        """Run a blocking indexer query off the event loop with a deadline"""
        try:
            return await asyncio.wait_for(asyncio.to_thread(query, *args), timeout=self.indexer_timeout)
        except asyncio.TimeoutError as e:
            raise IndexerUnavailable(
                f"Indexer did not answer within {self.indexer_timeout}s ({query.__name__})"
            ) from e

    async def _reference_utxo(self, ref: Optional[UtxoRef], what: str) -> pc.UTxO:
        if ref is None:
            raise AssemblyFailure(f"Bootstrap descriptor has no {what}")
        utxo = await self._read(self.indexer.find_by_id, ref.to_input())
        if utxo is None:
            raise AssemblyFailure(f"{what} {ref.tx_hash}#{ref.output_index} not found on chain")
        return utxo

    async def _wallet_utxos(self, address: pc.Address) -> List[pc.UTxO]:
        utxos = await self._read(self.indexer.list_unspent_by_owner_address, str(address))
        if not utxos:
            raise WalletEmpty(f"Wallet {address} has no UTxOs")
        return utxos

    async def _registry_utxos(self, descriptor: BootstrapDescriptor) -> List[pc.UTxO]:
        registry_hash = script_hash(self.assembler.directory_spend_script(descriptor))
        return await self._read(
            self.indexer.list_unspent_by_payment_credential_hash, registry_hash.payload.hex()
        )

    def _validator(self, substandard: str, title: str) -> SubstandardValidator:
        validator = self.substandards.get_validator(substandard, title)
        if validator is None:
            raise BadRequest(f"Substandard validator '{title}' not found in '{substandard}'")
        return validator

    async def _build(self, plan: TransactionPlan) -> str:
        transaction = await asyncio.to_thread(self.builder.build, plan)
        return transaction.to_cbor_hex()

    async def register(self, request: RegisterTokenRequest, protocol_tx_hash: Optional[str] = None) -> TxOutcome:
        """
        Build the transaction registering a new programmable token policy

        Args:
            request: Validated register request
            protocol_tx_hash: Protocol version, defaults to the active one

        Returns:
            TxOutcome with the unsigned transaction and the new policy id
        """
        try:
            descriptor = self.catalog.resolve(protocol_tx_hash)
            logger.info(f"Register request on protocol version {descriptor.tx_hash}")

            registrar = addresses.parse_address(request.registrar_address)
            recipient = addresses.parse_address(request.recipient_address) if request.recipient_address else None

            issue = self._validator(request.substandard_name, request.substandard_issue_contract_name)
            transfer = self._validator(request.substandard_name, request.substandard_transfer_contract_name)
            third_party = self.substandards.get_validator(request.substandard_name, request.substandard_name)

            wallet_utxos = await self._wallet_utxos(registrar)
            protocol_params_utxo = await self._reference_utxo(descriptor.protocol_params_utxo, "protocolParamsUtxo")
            issuance_utxo = await self._reference_utxo(descriptor.issuance_utxo, "issuanceUtxo")
            registry_utxos = await self._registry_utxos(descriptor)

            plan = self.assembler.plan_register(
                descriptor,
                issue=issue,
                transfer=transfer,
                third_party=third_party,
                registrar=registrar,
                recipient=recipient,
                asset_name=request.asset_name_bytes,
                quantity=request.quantity_value,
                wallet_utxos=wallet_utxos,
                registry_utxos=registry_utxos,
                protocol_params_utxo=protocol_params_utxo,
                issuance_utxo=issuance_utxo,
            )
            cbor_hex = await self._build(plan)
        except AlreadyRegistered as e:
            logger.warning(f"Token policy {e.policy_id} already registered")
            return TxOutcome.failed(e)
        except ProgrammableTokenError as e:
            logger.warning(f"Register failed [{e.code}]: {e.message}")
            return TxOutcome.failed(e)

        return TxOutcome.ok(cbor_hex, policy_id=plan.policy_id.payload.hex())

    async def mint(self, request: MintTokenRequest, protocol_tx_hash: Optional[str] = None) -> TxOutcome:
        """Build the transaction minting more supply of a registered policy"""
        try:
            descriptor = self.catalog.resolve(protocol_tx_hash)
            issuer = addresses.parse_address(request.issuer_base_address)
            recipient = addresses.parse_address(request.recipient_address) if request.recipient_address else None
            issue = self._validator(request.substandard_name, request.substandard_issue_contract_name)

            wallet_utxos = await self._wallet_utxos(issuer)

            plan = self.assembler.plan_mint(
                descriptor,
                issue=issue,
                issuer=issuer,
                recipient=recipient,
                asset_name=request.asset_name_bytes,
                quantity=request.quantity_value,
                wallet_utxos=wallet_utxos,
            )
            cbor_hex = await self._build(plan)
        except ProgrammableTokenError as e:
            logger.warning(f"Mint failed [{e.code}]: {e.message}")
            return TxOutcome.failed(e)

        return TxOutcome.ok(cbor_hex, policy_id=plan.policy_id.payload.hex())

    async def transfer(self, spec: TransferTokenSpec) -> TxOutcome:
        """Build the transaction moving programmable tokens to new owners"""
        try:
            descriptor = self.catalog.resolve(spec.protocol_tx_hash)
            sender = addresses.parse_address(spec.sender_address)
            recipients = [(addresses.parse_address(address), quantity) for address, quantity in spec.recipients]
            transfer = self._validator(spec.substandard_name, spec.substandard_transfer_contract_name)
            try:
                raw_policy_id = bytes.fromhex(spec.policy_id)
                asset_name = bytes.fromhex(spec.asset_name)
            except ValueError as e:
                raise BadRequest(f"Invalid policy id or asset name: {e}") from e
            if len(raw_policy_id) != POLICY_ID_SIZE:
                raise BadRequest(f"Policy id must be {POLICY_ID_SIZE} bytes, got {len(raw_policy_id)}")
            policy_id = pc.ScriptHash(raw_policy_id)

            source_utxo = await self._read(self.indexer.find_by_id, spec.source_utxo.to_input())
            if source_utxo is None:
                raise BadRequest(f"UTxO {spec.source_utxo.tx_hash}#{spec.source_utxo.output_index} not found")
            wallet_utxos = await self._wallet_utxos(sender)
            protocol_params_utxo = await self._reference_utxo(descriptor.protocol_params_utxo, "protocolParamsUtxo")
            registry_utxos = await self._registry_utxos(descriptor)

            plan = self.assembler.plan_transfer(
                descriptor,
                transfer=transfer,
                source_utxo=source_utxo,
                policy_id=policy_id,
                asset_name=asset_name,
                recipients=recipients,
                fee_payer=sender,
                wallet_utxos=wallet_utxos,
                registry_utxos=registry_utxos,
                protocol_params_utxo=protocol_params_utxo,
            )
            cbor_hex = await self._build(plan)
        except ProgrammableTokenError as e:
            logger.warning(f"Transfer failed [{e.code}]: {e.message}")
            return TxOutcome.failed(e)

        return TxOutcome.ok(cbor_hex)
