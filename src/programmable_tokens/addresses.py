"""
Address derivation for programmable tokens
"""

import pycardano as pc

from .exceptions import BadRequest


def parse_address(address: str) -> pc.Address:
    try:
        return pc.Address.from_primitive(address)
    except (pc.PyCardanoException, ValueError, TypeError) as e:
        raise BadRequest(f"Invalid address {address}: {e}") from e


def programmable_address(logic_base_hash: pc.ScriptHash, owner: pc.Address) -> pc.Address:
    """
    Base address locked by the programmable logic base script

    The staking part is the owner's delegation credential as-is, so the owner
    keeps control of the tokens through their stake key.
    """
    if owner.staking_part is None or isinstance(owner.staking_part, pc.PointerAddress):
        raise BadRequest(f"Address {owner} has no delegation credential")
    return pc.Address(payment_part=logic_base_hash, staking_part=owner.staking_part, network=owner.network)


def script_enterprise_address(script_hash: pc.ScriptHash, network: pc.Network) -> pc.Address:
    return pc.Address(payment_part=script_hash, network=network)


def script_reward_address(script_hash: pc.ScriptHash, network: pc.Network) -> pc.Address:
    return pc.Address(staking_part=script_hash, network=network)


def stake_key_hash(address: pc.Address) -> pc.VerificationKeyHash:
    """Stake key hash of an address whose delegation credential is a key"""
    if not isinstance(address.staking_part, pc.VerificationKeyHash):
        raise BadRequest(f"Address {address} is not delegated to a stake key")
    return address.staking_part
