"""
Endpoint Proxy - multi-provider OpenAI-compatible gateway.
"""

__version__ = "0.1.0"
