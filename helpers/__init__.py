"""
Helper modules for the Bison client.
"""

from .unified_logger import UnifiedLogger, get_client_logger, get_logger, get_stream_logger

__all__ = [
    'UnifiedLogger',
    'get_logger',
    'get_client_logger',
    'get_stream_logger',
]
