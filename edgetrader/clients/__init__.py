# Exchange and estimator clients
from .anthropic_client import AnthropicClient
from .kalshi_client import KalshiClient
from .kraken_client import KrakenClient
from .signing import RequestSigner, load_private_key

__all__ = [
    "AnthropicClient",
    "KalshiClient",
    "KrakenClient",
    "RequestSigner",
    "load_private_key",
]
