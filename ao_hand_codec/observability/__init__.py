"""
Observability Layer - loguru Sink Configuration

Submodules:
    logger.py → configure_logging(settings)
"""

from ao_hand_codec.observability.logger import configure_logging

__all__ = [
    "configure_logging",
]
