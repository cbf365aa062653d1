"""
Logging configuration for WARP Endpoint Scan

Provides centralized logging setup for the scanner library and CLI.
"""

import logging
import sys
from typing import Optional, TextIO


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", debug: bool = False,
                  stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Setup logging configuration for WARP Endpoint Scan.
    
    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        debug: Enable debug output
        stream: Stream for the log handler (defaults to stdout)
        
    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            logging.StreamHandler(stream or sys.stdout)
        ]
    )
    
    logger = logging.getLogger('warp_scan')
    
    if debug:
        logger.setLevel(logging.DEBUG)
    
    return logger
