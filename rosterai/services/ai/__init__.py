from .gateway_optimizer import GatewayOptimizer
from .response_parser import extract_json_payload, parse_optimizer_payload

__all__ = [
    "GatewayOptimizer",
    "extract_json_payload",
    "parse_optimizer_payload",
]
