"""
Generation Gateways

- base_gateway: GenerationGateway ABC and GatewayConfig
- gemini_gateway: Google Gemini implementation
- prompts: summary and translation prompt builders
"""

from thread_digest.llm.base_gateway import GatewayConfig, GenerationGateway
from thread_digest.llm.gemini_gateway import GeminiGateway

__all__ = ["GatewayConfig", "GenerationGateway", "GeminiGateway"]
