"""
Transaction Assembler

Composes Register, Mint and Transfer transactions for programmable tokens.

The assembler is pure: callers hand it the bootstrap descriptor, the resolved
substandard validators and every UTxO it needs, and it returns a
TransactionPlan describing inputs, mints, withdrawals, outputs and reference
inputs. Balancing and serialization happen in ``builder``.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import pycardano as pc

from . import addresses
from .blueprint import (
    ISSUANCE_MINT,
    PROGRAMMABLE_LOGIC_BASE,
    PROGRAMMABLE_LOGIC_GLOBAL,
    REGISTRY_MINT,
    REGISTRY_SPEND,
    BlueprintRegistry,
    SubstandardValidator,
)
from .bootstrap import BootstrapDescriptor
from .exceptions import AlreadyRegistered, AssemblyFailure, BadRequest, RegistryInconsistent, WalletEmpty
from .parameterizer import ScriptCache, script_hash
from .registry import find_node, locate
from .script_data import Constr
from .types import (
    ISSUE_WITHDRAW_REDEEMER,
    TRANSFER_WITHDRAW_REDEEMER,
    IssuanceMint,
    ProgrammableTokenDatum,
    RegistryInsert,
    RegistryNode,
    ScriptCredential,
    SpendProgrammable,
    SpendRegistryNode,
    TokenProof,
    TransferAct,
)


logger = logging.getLogger(__name__)


# ============================================================================
# Plan
# ============================================================================


@dataclass
class ScriptInput:
    utxo: pc.UTxO
    script: pc.PlutusV3Script
    redeemer: object


@dataclass
class MintEntry:
    script: pc.PlutusV3Script
    policy_id: pc.ScriptHash
    asset_name: bytes
    quantity: int
    redeemer: object


@dataclass
class Withdrawal:
    script: pc.PlutusV3Script
    reward_address: pc.Address
    redeemer: object
    amount: int = 0


@dataclass
class PlannedOutput:
    """Output to create; ``lovelace`` is raised to the ledger minimum when building"""

    address: pc.Address
    multi_asset: pc.MultiAsset
    datum: Optional[pc.PlutusData] = None
    lovelace: int = 0


@dataclass
class TransactionPlan:
    """Everything the builder needs to produce one unsigned transaction"""

    change_address: pc.Address
    fee_inputs: List[pc.UTxO] = field(default_factory=list)
    script_inputs: List[ScriptInput] = field(default_factory=list)
    mints: List[MintEntry] = field(default_factory=list)
    withdrawals: List[Withdrawal] = field(default_factory=list)
    outputs: List[PlannedOutput] = field(default_factory=list)
    reference_inputs: List[pc.UTxO] = field(default_factory=list)
    required_signers: List[pc.VerificationKeyHash] = field(default_factory=list)
    policy_id: Optional[pc.ScriptHash] = None

    def mint_value(self) -> pc.MultiAsset:
        total = pc.MultiAsset()
        for entry in self.mints:
            total += pc.MultiAsset({entry.policy_id: pc.Asset({pc.AssetName(entry.asset_name): entry.quantity})})
        return total


# ============================================================================
# Helpers
# ============================================================================


def _hash_bytes(value: Optional[str], what: str) -> bytes:
    if not value:
        raise AssemblyFailure(f"Bootstrap descriptor has no {what}")
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise AssemblyFailure(f"Bootstrap {what} is not hex: {value}") from e


def _check_hash(derived: pc.ScriptHash, expected: Optional[str], what: str):
    if expected and derived.payload.hex() != expected.lower():
        raise AssemblyFailure(
            f"Derived {what} hash {derived.payload.hex()} does not match deployed hash {expected}"
        )


def _single_asset(policy_id: pc.ScriptHash, asset_name: bytes, quantity: int) -> pc.MultiAsset:
    return pc.MultiAsset({policy_id: pc.Asset({pc.AssetName(asset_name): quantity})})


def _asset_quantity(utxo: pc.UTxO, policy_id: pc.ScriptHash, asset_name: bytes) -> int:
    assets = utxo.output.amount.multi_asset.get(policy_id)
    if not assets:
        return 0
    return assets.get(pc.AssetName(asset_name), 0)


def _ledger_order(utxo: pc.UTxO) -> Tuple[bytes, int]:
    return utxo.input.transaction_id.payload, utxo.input.index


class TransactionAssembler:
    """
    Derives the per-request protocol scripts and assembles transaction plans

    Args:
        blueprints: Protocol blueprint registry
        network: Network the addresses are built for
        script_cache: Shared memo of parameterized scripts
    """

    def __init__(
        self,
        blueprints: BlueprintRegistry,
        network: pc.Network,
        script_cache: Optional[ScriptCache] = None,
    ):
        self.blueprints = blueprints
        self.network = network
        self.script_cache = script_cache or ScriptCache()

    # ------------------------------------------------------------------
    # Script derivation
    # ------------------------------------------------------------------

    def _apply(self, title: str, params: Sequence) -> pc.PlutusV3Script:
        return self.script_cache.get_or_apply(self.blueprints.get(title), params)

    def directory_mint_script(self, descriptor: BootstrapDescriptor) -> pc.PlutusV3Script:
        """Registry NFT policy: seed UTxO and issuance script hash applied"""
        params = descriptor.directory_mint_params
        seed = Constr(0, [_hash_bytes(params.tx_input.tx_hash, "seed tx hash"), params.tx_input.output_index])
        script = self._apply(
            REGISTRY_MINT, [seed, _hash_bytes(params.issuance_script_hash, "issuance script hash")]
        )
        _check_hash(script_hash(script), params.script_hash, "directory mint")
        return script

    def directory_spend_script(self, descriptor: BootstrapDescriptor) -> pc.PlutusV3Script:
        """Registry node spending validator, parameterized by the protocol params policy"""
        script = self._apply(
            REGISTRY_SPEND, [_hash_bytes(descriptor.protocol_params.script_hash, "protocol params hash")]
        )
        if descriptor.directory_spend_params is not None:
            _check_hash(script_hash(script), descriptor.directory_spend_params.script_hash, "directory spend")
        return script

    def issuance_script(self, descriptor: BootstrapDescriptor, issue_hash: pc.ScriptHash) -> pc.PlutusV3Script:
        """
        Issuance minting policy of a token

        Parameterized by the programmable logic base credential and the
        substandard issue credential; its hash is the token's policy id.
        """
        logic_base_hash = _hash_bytes(descriptor.programmable_logic_base_params.script_hash, "logic base hash")
        return self._apply(
            ISSUANCE_MINT,
            [Constr(1, [logic_base_hash]), Constr(1, [issue_hash.payload])],
        )

    def logic_global_script(self, descriptor: BootstrapDescriptor) -> pc.PlutusV3Script:
        script = self._apply(
            PROGRAMMABLE_LOGIC_GLOBAL,
            [_hash_bytes(descriptor.protocol_params.script_hash, "protocol params hash")],
        )
        _check_hash(script_hash(script), descriptor.programmable_logic_global_params.script_hash, "logic global")
        return script

    def logic_base_script(self, descriptor: BootstrapDescriptor) -> pc.PlutusV3Script:
        global_hash = script_hash(self.logic_global_script(descriptor))
        script = self._apply(PROGRAMMABLE_LOGIC_BASE, [Constr(1, [global_hash.payload])])
        _check_hash(script_hash(script), descriptor.programmable_logic_base_params.script_hash, "logic base")
        return script

    def _logic_base_hash(self, descriptor: BootstrapDescriptor) -> pc.ScriptHash:
        return pc.ScriptHash(_hash_bytes(descriptor.programmable_logic_base_params.script_hash, "logic base hash"))

    def _programmable_output(
        self, descriptor: BootstrapDescriptor, owner: pc.Address, multi_asset: pc.MultiAsset
    ) -> PlannedOutput:
        address = addresses.programmable_address(self._logic_base_hash(descriptor), owner)
        return PlannedOutput(address=address, multi_asset=multi_asset, datum=ProgrammableTokenDatum())

    def _issue_withdrawal(self, issue: SubstandardValidator) -> Withdrawal:
        return Withdrawal(
            script=issue.script,
            reward_address=addresses.script_reward_address(issue.script_hash, self.network),
            redeemer=ISSUE_WITHDRAW_REDEEMER,
        )

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------

    def plan_register(
        self,
        descriptor: BootstrapDescriptor,
        issue: SubstandardValidator,
        transfer: SubstandardValidator,
        third_party: Optional[SubstandardValidator],
        registrar: pc.Address,
        recipient: Optional[pc.Address],
        asset_name: bytes,
        quantity: int,
        wallet_utxos: List[pc.UTxO],
        registry_utxos: List[pc.UTxO],
        protocol_params_utxo: pc.UTxO,
        issuance_utxo: pc.UTxO,
    ) -> TransactionPlan:
        """
        Insert a new policy into the registry and mint its first supply

        Args:
            descriptor: Protocol version to build against
            issue: Substandard issue validator
            transfer: Substandard transfer validator
            third_party: Optional third party transfer validator
            registrar: Fee payer and change address
            recipient: Owner of the minted tokens, defaults to the registrar
            asset_name: Asset name bytes
            quantity: Amount to mint
            wallet_utxos: Registrar UTxOs used as fee inputs
            registry_utxos: UTxOs at the registry spend script
            protocol_params_utxo: Protocol params reference UTxO
            issuance_utxo: Issuance reference UTxO

        Returns:
            TransactionPlan with ``policy_id`` set to the new policy

        Raises:
            WalletEmpty: If the registrar has no UTxOs
            AlreadyRegistered: If the derived policy is already in the registry
            RegistryInconsistent: If no node covers the policy id
        """
        if not wallet_utxos:
            raise WalletEmpty(f"No UTxOs found at {registrar}")

        directory_mint = self.directory_mint_script(descriptor)
        registry_policy = script_hash(directory_mint)
        directory_spend = self.directory_spend_script(descriptor)
        directory_address = addresses.script_enterprise_address(script_hash(directory_spend), self.network)
        logger.info(f"Registry policy: {registry_policy.payload.hex()}, registry address: {directory_address}")

        issuance = self.issuance_script(descriptor, issue.script_hash)
        policy_id = script_hash(issuance)
        logger.info(f"New programmable token policy: {policy_id.payload.hex()}")

        position = locate(registry_utxos, policy_id.payload)
        if position.exact:
            raise AlreadyRegistered(policy_id.payload.hex())

        predecessor = position.entry
        if _asset_quantity(predecessor.utxo, registry_policy, predecessor.node.key) < 1:
            raise RegistryInconsistent(
                f"Registry node {predecessor.utxo.input} does not hold its registry NFT"
            )

        plan = TransactionPlan(change_address=registrar, fee_inputs=list(wallet_utxos), policy_id=policy_id)

        plan.script_inputs.append(
            ScriptInput(utxo=predecessor.utxo, script=directory_spend, redeemer=SpendRegistryNode())
        )

        plan.mints.append(
            MintEntry(
                script=directory_mint,
                policy_id=registry_policy,
                asset_name=policy_id.payload,
                quantity=1,
                redeemer=RegistryInsert(key=policy_id.payload, hashed_param=issue.script_hash.payload),
            )
        )
        plan.mints.append(
            MintEntry(
                script=issuance,
                policy_id=policy_id,
                asset_name=asset_name,
                quantity=quantity,
                redeemer=IssuanceMint(ScriptCredential(issue.script_hash.payload)),
            )
        )

        plan.withdrawals.append(self._issue_withdrawal(issue))

        plan.outputs.append(
            self._programmable_output(
                descriptor, recipient or registrar, _single_asset(policy_id, asset_name, quantity)
            )
        )

        updated_predecessor = RegistryNode(
            key=predecessor.node.key,
            next=policy_id.payload,
            transfer_logic_script=predecessor.node.transfer_logic_script,
            third_party_transfer_logic_script=predecessor.node.third_party_transfer_logic_script,
            global_state_policy_id=predecessor.node.global_state_policy_id,
        )
        plan.outputs.append(
            PlannedOutput(
                address=directory_address,
                multi_asset=_single_asset(registry_policy, predecessor.node.key, 1),
                datum=updated_predecessor,
                lovelace=predecessor.utxo.output.amount.coin,
            )
        )

        third_party_hash = third_party.script_hash.payload if third_party is not None else b""
        new_node = RegistryNode(
            key=policy_id.payload,
            next=predecessor.node.next,
            transfer_logic_script=ScriptCredential(transfer.script_hash.payload),
            third_party_transfer_logic_script=ScriptCredential(third_party_hash),
            global_state_policy_id=b"",
        )
        plan.outputs.append(
            PlannedOutput(
                address=directory_address,
                multi_asset=_single_asset(registry_policy, policy_id.payload, 1),
                datum=new_node,
            )
        )

        plan.reference_inputs.extend([protocol_params_utxo, issuance_utxo])
        logger.debug(f"Register plan: {len(plan.fee_inputs)} fee inputs, {len(plan.outputs)} outputs")
        return plan

    # ------------------------------------------------------------------
    # Mint
    # ------------------------------------------------------------------

    def plan_mint(
        self,
        descriptor: BootstrapDescriptor,
        issue: SubstandardValidator,
        issuer: pc.Address,
        recipient: Optional[pc.Address],
        asset_name: bytes,
        quantity: int,
        wallet_utxos: List[pc.UTxO],
    ) -> TransactionPlan:
        """Mint additional supply of an already registered policy"""
        if not wallet_utxos:
            raise WalletEmpty(f"No UTxOs found at {issuer}")

        issuance = self.issuance_script(descriptor, issue.script_hash)
        policy_id = script_hash(issuance)
        logger.info(f"Minting {quantity} of {policy_id.payload.hex()}.{asset_name.hex()}")

        plan = TransactionPlan(change_address=issuer, fee_inputs=list(wallet_utxos), policy_id=policy_id)
        plan.mints.append(
            MintEntry(
                script=issuance,
                policy_id=policy_id,
                asset_name=asset_name,
                quantity=quantity,
                redeemer=IssuanceMint(ScriptCredential(issue.script_hash.payload)),
            )
        )
        plan.withdrawals.append(self._issue_withdrawal(issue))
        plan.outputs.append(
            self._programmable_output(
                descriptor, recipient or issuer, _single_asset(policy_id, asset_name, quantity)
            )
        )
        return plan

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def plan_transfer(
        self,
        descriptor: BootstrapDescriptor,
        transfer: SubstandardValidator,
        source_utxo: pc.UTxO,
        policy_id: pc.ScriptHash,
        asset_name: bytes,
        recipients: Sequence[Tuple[pc.Address, int]],
        fee_payer: pc.Address,
        wallet_utxos: List[pc.UTxO],
        registry_utxos: List[pc.UTxO],
        protocol_params_utxo: pc.UTxO,
    ) -> TransactionPlan:
        """
        Move programmable tokens from a programmable address to other owners

        The untransferred remainder of the source UTxO goes back to the source
        address. The global logic withdrawal carries one token proof pointing
        at the registry node among the (ledger sorted) reference inputs.
        """
        if not wallet_utxos:
            raise WalletEmpty(f"No UTxOs found at {fee_payer}")
        if not recipients:
            raise BadRequest("Transfer needs at least one recipient")

        logic_global = self.logic_global_script(descriptor)
        logic_base = self.logic_base_script(descriptor)
        logic_base_hash = script_hash(logic_base)

        source_address = source_utxo.output.address
        if source_address.payment_part != logic_base_hash:
            raise BadRequest(f"UTxO {source_utxo.input} is not at a programmable address")
        owner_key = addresses.stake_key_hash(source_address)

        registry_entry = find_node(registry_utxos, policy_id.payload)
        if registry_entry is None:
            raise BadRequest(f"Policy {policy_id.payload.hex()} is not registered")
        if registry_entry.node.transfer_logic_script.credential_hash != transfer.script_hash.payload:
            raise BadRequest(
                f"Transfer validator {transfer.title} is not the registered transfer logic of "
                f"{policy_id.payload.hex()}"
            )

        available = _asset_quantity(source_utxo, policy_id, asset_name)
        sent = sum(quantity for _, quantity in recipients)
        if any(quantity <= 0 for _, quantity in recipients):
            raise BadRequest("Transfer quantities must be positive")
        if sent > available:
            raise BadRequest(f"Transfer of {sent} exceeds the {available} tokens held by {source_utxo.input}")

        plan = TransactionPlan(
            change_address=fee_payer,
            fee_inputs=list(wallet_utxos),
            required_signers=[owner_key],
        )
        plan.script_inputs.append(ScriptInput(utxo=source_utxo, script=logic_base, redeemer=SpendProgrammable()))

        plan.reference_inputs.extend([protocol_params_utxo, registry_entry.utxo])
        proof_index = sorted(plan.reference_inputs, key=_ledger_order).index(registry_entry.utxo)

        plan.withdrawals.append(
            Withdrawal(
                script=transfer.script,
                reward_address=addresses.script_reward_address(transfer.script_hash, self.network),
                redeemer=TRANSFER_WITHDRAW_REDEEMER,
            )
        )
        plan.withdrawals.append(
            Withdrawal(
                script=logic_global,
                reward_address=addresses.script_reward_address(script_hash(logic_global), self.network),
                redeemer=TransferAct([TokenProof(proof_index)]),
            )
        )

        for recipient, quantity in recipients:
            plan.outputs.append(
                self._programmable_output(descriptor, recipient, _single_asset(policy_id, asset_name, quantity))
            )

        remainder = source_utxo.output.amount.multi_asset - _single_asset(policy_id, asset_name, sent)
        remainder.normalize()
        if remainder:
            plan.outputs.append(
                PlannedOutput(address=source_address, multi_asset=remainder, datum=ProgrammableTokenDatum())
            )

        logger.info(
            f"Transfer of {sent} {policy_id.payload.hex()}.{asset_name.hex()} to {len(recipients)} recipients, "
            f"token proof index {proof_index}"
        )
        return plan
