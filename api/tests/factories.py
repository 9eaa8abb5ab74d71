"""
Test Data Factories

Provides factory functions to generate request payloads for API testing.
"""

import random


class CardanoAddressFactory:
    """Factory for generating valid-looking Cardano addresses"""

    @staticmethod
    def create_testnet_address(prefix: str = "addr_test1") -> str:
        """Generate a testnet address"""
        chars = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
        suffix = "".join(random.choice(chars) for _ in range(98))
        return f"{prefix}{suffix}"


class TokenRequestFactory:
    """Factory for register and mint request bodies (camelCase, as sent by wallets)"""

    @staticmethod
    def create_register_request(**overrides) -> dict:
        body = {
            "substandardName": "dummy",
            "substandardIssueContractName": "issue.issue.withdraw",
            "substandardTransferContractName": "transfer.transfer.withdraw",
            "assetName": "544f4b454e",
            "quantity": "1000",
            "registrarAddress": CardanoAddressFactory.create_testnet_address(),
        }
        body.update(overrides)
        return body

    @staticmethod
    def create_mint_request(**overrides) -> dict:
        body = {
            "substandardName": "dummy",
            "substandardIssueContractName": "issue.issue.withdraw",
            "assetName": "544f4b454e",
            "quantity": "25",
            "issuerBaseAddress": CardanoAddressFactory.create_testnet_address(),
            "recipientAddress": CardanoAddressFactory.create_testnet_address(),
        }
        body.update(overrides)
        return body
