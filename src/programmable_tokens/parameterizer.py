"""
Script Parameterizer

Applies script data parameters to compiled Plutus V3 templates and computes
script hashes. Parameter application is done on the UPLC term itself: every
parameter becomes an application of the next leading lambda, so the result
is byte-identical for identical inputs.
"""

import logging
import threading
from typing import Callable, Dict, Sequence, Tuple

import cbor2
import pycardano as pc
import uplc
import uplc.ast

from . import script_data
from .exceptions import MalformedData, ParamApplyFailure


logger = logging.getLogger(__name__)


def _unwrap_body(script: bytes) -> bytes:
    """Strip the CBOR byte-string wrapper around the flat encoding"""
    try:
        flat = cbor2.loads(bytes(script))
    except (cbor2.CBORDecodeError, ValueError, TypeError) as e:
        raise ParamApplyFailure(f"Script body is not CBOR wrapped: {e}") from e
    if not isinstance(flat, bytes):
        raise ParamApplyFailure("Script body is not a CBOR byte string")
    return flat


def apply_params(script: bytes, params: Sequence[script_data.ScriptData]) -> pc.PlutusV3Script:
    """
    Apply an ordered parameter list to a compiled script template

    Args:
        script: Single CBOR-wrapped flat UPLC program
        params: Script data values, outermost lambda first

    Returns:
        Parameterized PlutusV3Script

    Raises:
        ParamApplyFailure: If the body is not a UPLC program or has fewer
            leading lambdas than parameters
    """
    flat = _unwrap_body(script)
    try:
        program = uplc.unflatten(flat)
    except Exception as e:
        raise ParamApplyFailure(f"Script body is not a flat UPLC program: {e}") from e

    term = program.term
    for index in range(len(params)):
        if not isinstance(term, uplc.ast.Lambda):
            raise ParamApplyFailure(
                f"Script accepts {index} parameters, {len(params)} were supplied"
            )
        term = term.term

    applied = program.term
    for param in params:
        try:
            constant = uplc.ast.data_from_cbor(script_data.encode(param))
        except MalformedData as e:
            raise ParamApplyFailure(f"Parameter is not script data: {e}") from e
        applied = uplc.ast.Apply(applied, constant)

    try:
        flat_applied = uplc.flatten(uplc.ast.Program(program.version, applied))
    except Exception as e:
        raise ParamApplyFailure(f"Could not flatten parameterized script: {e}") from e

    return pc.PlutusV3Script(cbor2.dumps(flat_applied))


def script_hash(script: pc.PlutusV3Script) -> pc.ScriptHash:
    """blake2b-224 of the Plutus V3 language tag followed by the script body"""
    return pc.plutus_script_hash(script)


class ScriptCache:
    """
    Process-wide memo of parameterized scripts.

    Keys are (template body, encoded parameters); values are computed at most
    once per key. Each key has its own lock, so different scripts are applied
    in parallel.
    """

    def __init__(self, apply: Callable[[bytes, Sequence], pc.PlutusV3Script] = apply_params):
        self._apply = apply
        self._scripts: Dict[Tuple[bytes, Tuple[bytes, ...]], pc.PlutusV3Script] = {}
        self._key_locks: Dict[Tuple[bytes, Tuple[bytes, ...]], threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._scripts)

    def get_or_apply(self, script: bytes, params: Sequence[script_data.ScriptData]) -> pc.PlutusV3Script:
        try:
            key = (bytes(script), tuple(script_data.encode(p) for p in params))
        except MalformedData as e:
            raise ParamApplyFailure(f"Parameter is not script data: {e}") from e

        cached = self._scripts.get(key)
        if cached is not None:
            return cached

        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            cached = self._scripts.get(key)
            if cached is None:
                cached = self._apply(script, params)
                self._scripts[key] = cached
                logger.debug(f"Cached parameterized script {script_hash(cached).payload.hex()}")
        return cached
