"""
Test Data Factories

Compiled UPLC templates, protocol descriptors, addresses and UTxOs for
exercising the transaction-assembly engine without a chain.
"""

from fractions import Fraction
from typing import Dict, List, Optional

import cbor2
import pycardano as pc
import uplc

from programmable_tokens.blueprint import (
    ISSUANCE_MINT,
    PROGRAMMABLE_LOGIC_BASE,
    PROGRAMMABLE_LOGIC_GLOBAL,
    REGISTRY_MINT,
    REGISTRY_SPEND,
    BlueprintRegistry,
    BlueprintValidator,
    SubstandardCatalog,
)
from programmable_tokens.bootstrap import BootstrapDescriptor
from programmable_tokens.parameterizer import apply_params, script_hash
from programmable_tokens.script_data import Constr
from programmable_tokens.types import REGISTRY_TAIL_KEY, RegistryNode, ScriptCredential


# Compiled Aiken substandard validators (always-succeeding on redeemer 100 / 200)
SUBSTANDARD_ISSUE_HEX = (
    "585701010029800aba2aba1aab9eaab9dab9a4888896600264646644b30013370e900218031baa0028991"
    "9b87375a6012008906400980418039baa0028a504014600c600e002600c004600c00260066ea801a29344d9590011"
)
SUBSTANDARD_TRANSFER_HEX = (
    "585701010029800aba2aba1aab9eaab9dab9a4888896600264646644b30013370e900218031baa0028991"
    "9b87375a6012008904801980418039baa0028a504014600c600e002600c004600c00260066ea801a29344d9590011"
)
ISSUE_TITLE = "issue.issue.withdraw"
TRANSFER_TITLE = "transfer.transfer.withdraw"

PROTOCOL_PARAMS_HASH = "ab" * 28
ISSUANCE_SCRIPT_HASH = "cd" * 28
SEED_TX_HASH = "11" * 32


def make_template(arity: int, marker: int) -> pc.PlutusV3Script:
    """Plutus V3 program with ``arity`` leading lambdas returning ``marker``"""
    body = f"(con integer {marker})"
    for i in reversed(range(arity)):
        body = f"(lam p{i} {body})"
    program = uplc.parse(f"(program 1.1.0 {body})")
    return pc.PlutusV3Script(cbor2.dumps(uplc.flatten(program)))


PROTOCOL_TEMPLATES: Dict[str, pc.PlutusV3Script] = {
    REGISTRY_MINT: make_template(2, 1),
    REGISTRY_SPEND: make_template(1, 2),
    ISSUANCE_MINT: make_template(2, 3),
    PROGRAMMABLE_LOGIC_BASE: make_template(1, 4),
    PROGRAMMABLE_LOGIC_GLOBAL: make_template(1, 5),
}


def make_blueprint_registry(templates: Dict[str, pc.PlutusV3Script] = None) -> BlueprintRegistry:
    templates = PROTOCOL_TEMPLATES if templates is None else templates
    return BlueprintRegistry(
        [BlueprintValidator(title=title, compiled_code=bytes(script).hex()) for title, script in templates.items()]
    )


def make_substandard_catalog() -> SubstandardCatalog:
    dummy = BlueprintRegistry(
        [
            BlueprintValidator(title=ISSUE_TITLE, compiled_code=SUBSTANDARD_ISSUE_HEX),
            BlueprintValidator(title=TRANSFER_TITLE, compiled_code=SUBSTANDARD_TRANSFER_HEX),
        ]
    )
    return SubstandardCatalog({"dummy": dummy})


def logic_hashes(protocol_params_hash: str = PROTOCOL_PARAMS_HASH) -> Dict[str, str]:
    """Global and base logic hashes derived the same way the deployment does"""
    global_script = apply_params(PROTOCOL_TEMPLATES[PROGRAMMABLE_LOGIC_GLOBAL], [bytes.fromhex(protocol_params_hash)])
    global_hash = script_hash(global_script)
    base_script = apply_params(PROTOCOL_TEMPLATES[PROGRAMMABLE_LOGIC_BASE], [Constr(1, [global_hash.payload])])
    return {"global": global_hash.payload.hex(), "base": script_hash(base_script).payload.hex()}


def make_descriptor_dict(tx_hash: str = "aa" * 32, ref_tx_hash: str = "22" * 32) -> dict:
    """Bootstrap descriptor in its on-disk (camelCase) form"""
    hashes = logic_hashes()
    return {
        "txHash": tx_hash,
        "protocolParams": {"scriptHash": PROTOCOL_PARAMS_HASH},
        "programmableLogicGlobalPrams": {"scriptHash": hashes["global"]},
        "programmableLogicBaseParams": {"scriptHash": hashes["base"]},
        "issuanceParams": {"txInput": {"txHash": SEED_TX_HASH, "outputIndex": 1}},
        "directoryMintParams": {
            "txInput": {"txHash": SEED_TX_HASH, "outputIndex": 0},
            "issuanceScriptHash": ISSUANCE_SCRIPT_HASH,
        },
        "programmableBaseRefInput": {"txHash": ref_tx_hash, "outputIndex": 3},
        "programmableGlobalRefInput": {"txHash": ref_tx_hash, "outputIndex": 4},
        "protocolParamsUtxo": {"txHash": ref_tx_hash, "outputIndex": 0},
        "directoryUtxo": {"txHash": ref_tx_hash, "outputIndex": 1},
        "issuanceUtxo": {"txHash": ref_tx_hash, "outputIndex": 2},
    }


def make_descriptor(**kwargs) -> BootstrapDescriptor:
    return BootstrapDescriptor.model_validate(make_descriptor_dict(**kwargs))


def make_address(payment_byte: str = "c", stake_byte: Optional[str] = "d") -> pc.Address:
    """Testnet base address (or enterprise address when stake_byte is None)"""
    payment = pc.VerificationKeyHash(bytes.fromhex(payment_byte * 56))
    staking = pc.VerificationKeyHash(bytes.fromhex(stake_byte * 56)) if stake_byte else None
    return pc.Address(payment_part=payment, staking_part=staking, network=pc.Network.TESTNET)


def make_utxo(
    address: pc.Address,
    tx_hash: str = "33" * 32,
    index: int = 0,
    lovelace: int = 10_000_000,
    assets: Optional[dict] = None,
    datum=None,
) -> pc.UTxO:
    multi_asset = pc.MultiAsset.from_primitive(assets) if assets else pc.MultiAsset()
    return pc.UTxO(
        pc.TransactionInput.from_primitive([tx_hash, index]),
        pc.TransactionOutput(address, pc.Value(lovelace, multi_asset), datum=datum),
    )


def make_node(key: bytes, next_key: bytes, transfer_hash: bytes = b"\x01" * 28) -> RegistryNode:
    return RegistryNode(
        key=key,
        next=next_key,
        transfer_logic_script=ScriptCredential(transfer_hash),
        third_party_transfer_logic_script=ScriptCredential(b""),
        global_state_policy_id=b"",
    )


def make_registry_utxo(
    node: RegistryNode,
    registry_policy: pc.ScriptHash,
    address: pc.Address,
    tx_hash: str = "44" * 32,
    index: int = 0,
) -> pc.UTxO:
    return make_utxo(
        address,
        tx_hash=tx_hash,
        index=index,
        lovelace=1_500_000,
        assets={registry_policy.payload: {node.key: 1}},
        datum=node,
    )


def head_sentinel() -> RegistryNode:
    return make_node(b"", REGISTRY_TAIL_KEY, transfer_hash=b"")


def _ref_key(ref: pc.TransactionInput) -> tuple:
    return ref.transaction_id.payload, ref.index


class FakeIndexer:
    """In-memory UtxoIndexer"""

    def __init__(self):
        self.by_ref: Dict[tuple, pc.UTxO] = {}
        self.by_address: Dict[str, List[pc.UTxO]] = {}
        self.by_credential: Dict[str, List[pc.UTxO]] = {}
        self.calls: List[str] = []

    def add(self, utxo: pc.UTxO):
        self.by_ref[_ref_key(utxo.input)] = utxo

    def find_by_id(self, ref: pc.TransactionInput) -> Optional[pc.UTxO]:
        self.calls.append("find_by_id")
        return self.by_ref.get(_ref_key(ref))

    def list_unspent_by_owner_address(self, address: str) -> List[pc.UTxO]:
        self.calls.append("list_unspent_by_owner_address")
        return list(self.by_address.get(address, []))

    def list_unspent_by_payment_credential_hash(self, credential_hash: str) -> List[pc.UTxO]:
        self.calls.append("list_unspent_by_payment_credential_hash")
        return list(self.by_credential.get(credential_hash, []))


class FakeTransaction:
    def __init__(self, plan):
        self.plan = plan

    def to_cbor_hex(self) -> str:
        return "84a0a0f5f6"


class RecordingBuilder:
    """Plan builder that records plans instead of balancing them"""

    def __init__(self):
        self.plans = []

    def build(self, plan):
        self.plans.append(plan)
        return FakeTransaction(plan)


class FixedChainContext(pc.ChainContext):
    """Offline chain context with preview-like parameters and flat execution costs"""

    EX_UNITS = pc.ExecutionUnits(mem=500_000, steps=200_000_000)

    def __init__(self, utxos: Optional[Dict[str, List[pc.UTxO]]] = None):
        self._utxos_by_address = utxos or {}

    @property
    def protocol_param(self) -> pc.ProtocolParameters:
        return pc.ProtocolParameters(
            min_fee_constant=155381,
            min_fee_coefficient=44,
            max_block_size=90112,
            max_tx_size=16384,
            max_block_header_size=1100,
            key_deposit=2_000_000,
            pool_deposit=500_000_000,
            pool_influence=Fraction(3, 10),
            monetary_expansion=Fraction(3, 1000),
            treasury_expansion=Fraction(1, 5),
            decentralization_param=Fraction(0),
            extra_entropy="",
            protocol_major_version=9,
            protocol_minor_version=0,
            min_utxo=1_000_000,
            min_pool_cost=170_000_000,
            price_mem=Fraction(577, 10000),
            price_step=Fraction(721, 10000000),
            max_tx_ex_mem=14_000_000,
            max_tx_ex_steps=10_000_000_000,
            max_block_ex_mem=62_000_000,
            max_block_ex_steps=20_000_000_000,
            max_val_size=5000,
            collateral_percent=150,
            max_collateral_inputs=3,
            coins_per_utxo_word=34482,
            coins_per_utxo_byte=4310,
            cost_models={},
        )

    @property
    def genesis_param(self) -> pc.GenesisParameters:
        return pc.GenesisParameters(
            active_slots_coefficient=Fraction(1, 20),
            update_quorum=5,
            max_lovelace_supply=45_000_000_000_000_000,
            network_magic=2,
            epoch_length=86400,
            system_start=1666656000,
            slots_per_kes_period=129600,
            slot_length=1,
            max_kes_evolutions=62,
            security_param=432,
        )

    @property
    def network(self) -> pc.Network:
        return pc.Network.TESTNET

    @property
    def epoch(self) -> int:
        return 500

    @property
    def last_block_slot(self) -> int:
        return 50_000_000

    def _utxos(self, address: str) -> List[pc.UTxO]:
        return list(self._utxos_by_address.get(address, []))

    def evaluate_tx_cbor(self, cbor) -> Dict[str, pc.ExecutionUnits]:
        tx = pc.Transaction.from_cbor(cbor)
        return {
            f"{redeemer.tag.name.lower()}:{redeemer.index}": pc.ExecutionUnits(self.EX_UNITS.mem, self.EX_UNITS.steps)
            for redeemer in tx.transaction_witness_set.redeemer
        }
