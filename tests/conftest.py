"""
Pytest configuration for engine tests

Shared fixtures: protocol blueprint built from generated UPLC templates,
a bootstrap descriptor derived from it, and the substandard catalog.
"""

import pycardano as pc
import pytest

from programmable_tokens.assembler import TransactionAssembler
from programmable_tokens.parameterizer import ScriptCache, script_hash
from tests.factories import (
    ISSUE_TITLE,
    TRANSFER_TITLE,
    make_address,
    make_blueprint_registry,
    make_descriptor,
    make_substandard_catalog,
)


@pytest.fixture
def blueprints():
    """Protocol blueprint registry with parameterizable templates"""
    return make_blueprint_registry()


@pytest.fixture
def descriptor():
    """Active bootstrap descriptor"""
    return make_descriptor()


@pytest.fixture
def substandards():
    return make_substandard_catalog()


@pytest.fixture
def issue_validator(substandards):
    return substandards.get_validator("dummy", ISSUE_TITLE)


@pytest.fixture
def transfer_validator(substandards):
    return substandards.get_validator("dummy", TRANSFER_TITLE)


@pytest.fixture
def assembler(blueprints):
    return TransactionAssembler(blueprints, pc.Network.TESTNET, ScriptCache())


@pytest.fixture
def registry_policy(assembler, descriptor):
    """Policy id of the registry NFTs"""
    return script_hash(assembler.directory_mint_script(descriptor))


@pytest.fixture
def registry_address(assembler, descriptor):
    """Enterprise address of the registry spend script"""
    return pc.Address(
        payment_part=script_hash(assembler.directory_spend_script(descriptor)),
        network=pc.Network.TESTNET,
    )


@pytest.fixture
def registrar():
    return make_address("c", "d")


@pytest.fixture
def recipient():
    return make_address("e", "f")
