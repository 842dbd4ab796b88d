from .connector import ChainConnector, ChainUnavailableError, NodeTimeoutError, to_plain
from .simulator import SimulatedNode, encode_revert_data

__all__ = [
    "ChainConnector",
    "ChainUnavailableError",
    "NodeTimeoutError",
    "SimulatedNode",
    "encode_revert_data",
    "to_plain",
]
