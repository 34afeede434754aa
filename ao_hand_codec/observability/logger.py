"""
Logging Setup for the AO Hand Fracture Codec

Every module logs through loguru's shared `logger`. Libraries should not
decide where logs go, so nothing here runs on import: the embedding
application (or a script) calls configure_logging() once at startup.

Log Levels Used:
    DEBUG   → Cascade transitions, ignored events, lookups, invalid codes
    INFO    → Taxonomy load, commits, removals, saves
    WARNING → Code committed although it failed validation

Usage:
    from ao_hand_codec.observability import configure_logging

    configure_logging()                       # settings from the environment
    configure_logging(load_settings(log_level="DEBUG"))
"""

import sys
from typing import List, Optional

from loguru import logger

from ao_hand_codec.core.config import CodecSettings, get_settings
from ao_hand_codec.core.constants import LOG_FORMAT


def configure_logging(settings: Optional[CodecSettings] = None) -> List[int]:
    """
    Replace loguru's default sink with the codec's sinks.

    STAGE 1: Remove existing sinks
    STAGE 2: Add a stderr sink at the configured level
    STAGE 3: Add a file sink if one is configured

    Args:
        settings: Codec settings (default: the process-wide settings)

    Returns:
        Ids of the sinks added (for logger.remove in tests)
    """
    settings = settings or get_settings()

    logger.remove()
    sink_ids = [logger.add(sys.stderr, level=settings.log_level, format=LOG_FORMAT)]

    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(
            logger.add(
                str(settings.log_file),
                level=settings.log_level,
                format=LOG_FORMAT,
                encoding="utf-8",
            )
        )

    logger.debug(f"Logging configured | Level: {settings.log_level} | Sinks: {len(sink_ids)}")
    return sink_ids
