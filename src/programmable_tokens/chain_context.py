"""
Cardano Chain Context Management

Network configuration and Blockfrost connection setup shared by the
indexer and the transaction builder.
"""

from blockfrost import ApiUrls, BlockFrostApi
import pycardano as pc


NETWORKS = {
    "preview": (ApiUrls.preview.value, pc.Network.TESTNET),
    "preprod": (ApiUrls.preprod.value, pc.Network.TESTNET),
    "mainnet": (ApiUrls.mainnet.value, pc.Network.MAINNET),
}


class CardanoChainContext:
    """Manages Cardano chain context and network configuration"""

    def __init__(self, network: str = "preview", blockfrost_api_key: str = None):
        """
        Initialize chain context

        Args:
            network: Network name ("preview", "preprod" or "mainnet")
            blockfrost_api_key: BlockFrost project id for chain queries
        """
        if network not in NETWORKS:
            raise ValueError(f"Unsupported network: {network}")
        if not blockfrost_api_key:
            raise ValueError("BlockFrost API key required for chain context")

        self.network = network
        self.blockfrost_api_key = blockfrost_api_key
        self.base_url, self.cardano_network = NETWORKS[network]

        self.api = BlockFrostApi(project_id=blockfrost_api_key, base_url=self.base_url)
        self.context = pc.BlockFrostChainContext(project_id=blockfrost_api_key, base_url=self.base_url)

    def get_context(self) -> pc.ChainContext:
        """Get the chain context"""
        return self.context

    def get_api(self) -> BlockFrostApi:
        """Get the BlockFrost API instance"""
        return self.api

    def get_network_info(self) -> dict:
        return {
            "network": self.network,
            "cardano_network": self.cardano_network.name,
            "base_url": self.base_url,
        }
