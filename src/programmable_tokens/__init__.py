"""
Programmable Tokens Off-chain Package

Transaction-assembly engine for CIP-0113 programmable tokens on Cardano.
Derives parameterized protocol scripts, navigates the on-chain registry and
builds unsigned register, mint and transfer transactions.
"""

from .assembler import TransactionAssembler, TransactionPlan
from .blueprint import BlueprintRegistry, SubstandardCatalog, SubstandardValidator
from .bootstrap import BootstrapCatalog, BootstrapDescriptor
from .builder import PlanBuilder
from .exceptions import ProgrammableTokenError
from .parameterizer import ScriptCache, apply_params, script_hash
from .registry import encode_registry_node, locate, parse_registry_node
from .service import TokenIssuanceService, TransferTokenSpec, TxOutcome

__all__ = [
    "TransactionAssembler",
    "TransactionPlan",
    "BlueprintRegistry",
    "SubstandardCatalog",
    "SubstandardValidator",
    "BootstrapCatalog",
    "BootstrapDescriptor",
    "PlanBuilder",
    "ProgrammableTokenError",
    "ScriptCache",
    "apply_params",
    "script_hash",
    "encode_registry_node",
    "locate",
    "parse_registry_node",
    "TokenIssuanceService",
    "TransferTokenSpec",
    "TxOutcome",
]
