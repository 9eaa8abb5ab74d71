"""
Registry Nodes

Codec for the sorted linked-list registry datums and the navigator that finds
where a policy id sits in the list.

A node datum is constructor 0 with five fields:
    key, next, transfer logic credential, third party credential, global state policy id
Credentials are constructor 0 (PubKey) or 1 (Script) wrapping a 28-byte hash;
an empty hash is accepted for an unset third party script.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pycardano as pc

from .exceptions import RegistryInconsistent
from .types import RegistryNode


logger = logging.getLogger(__name__)

CREDENTIAL_HASH_SIZE = 28


# ============================================================================
# Codec
# ============================================================================


def _valid_credential(credential) -> bool:
    return len(credential.credential_hash) in (0, CREDENTIAL_HASH_SIZE)


def parse_registry_node(datum_hex: str) -> Optional[RegistryNode]:
    """
    Decode an inline datum into a registry node

    Args:
        datum_hex: Hex-encoded inline datum

    Returns:
        RegistryNode, or None on any structural error
    """
    try:
        node = RegistryNode.from_cbor(datum_hex)
    except (pc.PyCardanoException, TypeError, ValueError) as e:
        logger.debug(f"Datum is not a registry node: {e}")
        return None
    if not (
        _valid_credential(node.transfer_logic_script)
        and _valid_credential(node.third_party_transfer_logic_script)
    ):
        logger.debug(f"Registry node {node.key.hex()} has a malformed credential")
        return None
    return node


def encode_registry_node(node: RegistryNode) -> str:
    return node.to_cbor_hex()


def _datum_hex(datum) -> Optional[str]:
    if datum is None:
        return None
    if isinstance(datum, pc.RawCBOR):
        return datum.cbor.hex()
    if isinstance(datum, (bytes, bytearray)):
        return bytes(datum).hex()
    if isinstance(datum, pc.CBORSerializable):
        return datum.to_cbor_hex()
    return None


def registry_node_from_utxo(utxo: pc.UTxO) -> Optional[RegistryNode]:
    """Parse the inline datum of a registry UTxO"""
    datum_hex = _datum_hex(utxo.output.datum)
    if datum_hex is None:
        return None
    return parse_registry_node(datum_hex)


# ============================================================================
# Navigator
# ============================================================================


@dataclass(frozen=True)
class RegistryEntry:
    """A parsed registry node together with the UTxO holding it"""

    utxo: pc.UTxO
    node: RegistryNode


@dataclass(frozen=True)
class RegistryPosition:
    """Result of a registry lookup: the node matching the key, or its predecessor"""

    entry: RegistryEntry
    exact: bool


def read_registry(utxos: Iterable[pc.UTxO]) -> List[RegistryEntry]:
    """Parse every registry UTxO, skipping the ones with unreadable datums"""
    entries = []
    for utxo in utxos:
        node = registry_node_from_utxo(utxo)
        if node is None:
            logger.warning(f"Skipping registry UTxO {utxo.input} with malformed datum")
            continue
        entries.append(RegistryEntry(utxo=utxo, node=node))
    return entries


def find_node(utxos: Iterable[pc.UTxO], key: bytes) -> Optional[RegistryEntry]:
    """The registry entry whose key equals ``key``, if any"""
    for entry in read_registry(utxos):
        if entry.node.key == key:
            return entry
    return None


def locate(utxos: Iterable[pc.UTxO], key: bytes) -> RegistryPosition:
    """
    Find the node covering ``key``

    Returns the exact node when ``key`` is registered, otherwise the unique
    node with ``node.key < key < node.next``.

    Raises:
        RegistryInconsistent: If no node covers the key
    """
    entries = read_registry(utxos)

    for entry in entries:
        if entry.node.key == key:
            logger.info(f"Registry already contains key {key.hex()}")
            return RegistryPosition(entry=entry, exact=True)

    for entry in entries:
        if entry.node.key < key < entry.node.next:
            logger.info(
                f"Predecessor for {key.hex()}: key={entry.node.key.hex()} next={entry.node.next.hex()}"
            )
            return RegistryPosition(entry=entry, exact=False)

    if not entries:
        raise RegistryInconsistent("Registry contains no readable nodes")
    raise RegistryInconsistent(f"No registry node covers key {key.hex()}")
