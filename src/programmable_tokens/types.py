from opshin.prelude import *


# Registry

REGISTRY_TAIL_KEY = b"\xff" * 27
REGISTRY_HEAD_KEY = b""


@dataclass()
class RegistryNode(PlutusData):
    CONSTR_ID = 0
    key: bytes                                      # Policy id, empty for the head
    next: bytes                                     # Key of the following node
    transfer_logic_script: Credential
    third_party_transfer_logic_script: Credential
    global_state_policy_id: bytes                   # Empty when unused


@dataclass()
class SpendRegistryNode(PlutusData):
    CONSTR_ID = 0


@dataclass()
class RegistryInsert(PlutusData):
    CONSTR_ID = 1
    key: bytes              # New policy id
    hashed_param: bytes     # Substandard issue script hash


# Programmable tokens

@dataclass()
class ProgrammableTokenDatum(PlutusData):
    CONSTR_ID = 0


@dataclass()
class SpendProgrammable(PlutusData):
    CONSTR_ID = 0


@dataclass()
class IssuanceMint(PlutusData):
    CONSTR_ID = 0
    minting_logic: Credential   # Substandard issue script


@dataclass()
class TokenProof(PlutusData):
    CONSTR_ID = 0
    registry_index: int     # Position of the registry node in the reference inputs


@dataclass()
class TransferAct(PlutusData):
    CONSTR_ID = 0
    proofs: List[TokenProof]


# Substandard withdraw redeemers
ISSUE_WITHDRAW_REDEEMER = 100
TRANSFER_WITHDRAW_REDEEMER = 200
