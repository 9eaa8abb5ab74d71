"""
UTxO Indexer

Read-only UTxO queries consumed by the transaction assembler, plus the
Blockfrost implementation used in production.
"""

import logging
from typing import List, Optional, Protocol

import pycardano as pc
import requests
from blockfrost import ApiError, BlockFrostApi
from pycardano.crypto.bech32 import encode as bech32_encode

from .exceptions import IndexerUnavailable


logger = logging.getLogger(__name__)

SCRIPT_CREDENTIAL_HRP = "script"


class UtxoIndexer(Protocol):
    """Queries the assembler needs from a chain indexer"""

    def find_by_id(self, ref: pc.TransactionInput) -> Optional[pc.UTxO]:
        ...

    def list_unspent_by_owner_address(self, address: str) -> List[pc.UTxO]:
        ...

    def list_unspent_by_payment_credential_hash(self, credential_hash: str) -> List[pc.UTxO]:
        ...


def _to_value(amount) -> pc.Value:
    """Convert a Blockfrost amount list into a pycardano Value"""
    lovelace = 0
    multi_asset = pc.MultiAsset()
    for item in amount:
        if item.unit == "lovelace":
            lovelace = int(item.quantity)
            continue
        policy_id = bytes.fromhex(item.unit[:56])
        asset_name = bytes.fromhex(item.unit[56:])
        multi_asset += pc.MultiAsset.from_primitive({policy_id: {asset_name: int(item.quantity)}})
    return pc.Value(lovelace, multi_asset)


def _to_utxo(tx_hash: str, output) -> pc.UTxO:
    datum = None
    inline_datum = getattr(output, "inline_datum", None)
    if inline_datum:
        datum = pc.RawPlutusData.from_cbor(bytes.fromhex(inline_datum))

    datum_hash = None
    data_hash = getattr(output, "data_hash", None)
    if data_hash and datum is None:
        datum_hash = pc.DatumHash.from_primitive(data_hash)

    tx_out = pc.TransactionOutput(
        pc.Address.from_primitive(output.address),
        _to_value(output.amount),
        datum_hash=datum_hash,
        datum=datum,
    )
    return pc.UTxO(pc.TransactionInput.from_primitive([tx_hash, output.output_index]), tx_out)


class BlockfrostIndexer:
    """UtxoIndexer backed by the Blockfrost API"""

    def __init__(self, api: BlockFrostApi):
        self.api = api

    def find_by_id(self, ref: pc.TransactionInput) -> Optional[pc.UTxO]:
        tx_hash = ref.transaction_id.payload.hex()
        try:
            result = self.api.transaction_utxos(tx_hash)
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise IndexerUnavailable(f"Blockfrost error fetching {tx_hash}: {e}") from e
        except requests.RequestException as e:
            raise IndexerUnavailable(f"Blockfrost unreachable: {e}") from e

        for output in result.outputs:
            if output.output_index == ref.index:
                if getattr(output, "consumed_by_tx", None):
                    logger.warning(f"UTxO {tx_hash}#{ref.index} is already spent")
                    return None
                return _to_utxo(tx_hash, output)
        return None

    def _address_utxos(self, address: str) -> List[pc.UTxO]:
        try:
            results = self.api.address_utxos(address, gather_pages=True)
        except ApiError as e:
            if e.status_code == 404:
                return []
            raise IndexerUnavailable(f"Blockfrost error fetching UTxOs of {address}: {e}") from e
        except requests.RequestException as e:
            raise IndexerUnavailable(f"Blockfrost unreachable: {e}") from e
        return [_to_utxo(result.tx_hash, result) for result in results]

    def list_unspent_by_owner_address(self, address: str) -> List[pc.UTxO]:
        return self._address_utxos(address)

    def list_unspent_by_payment_credential_hash(self, credential_hash: str) -> List[pc.UTxO]:
        """UTxOs at any address whose payment part is the given script hash"""
        credential = bech32_encode(SCRIPT_CREDENTIAL_HRP, bytes.fromhex(credential_hash))
        return self._address_utxos(credential)
