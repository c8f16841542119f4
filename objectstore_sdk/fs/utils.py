# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Utility functions for the object storage filesystem layer.

This module provides logging configuration and timing/tracing helpers
shared by stream sessions, the filesystem facade and the FUSE mount.
"""

import logging
import time
import os

# Enable a debug trace for all file operations if requested
TRACE_OPERATIONS = os.environ.get('OBJSTORE_FUSE_TRACE_OPS', '').lower() in ('true', '1', 'yes')

LOG_LEVEL = os.environ.get('OBJSTORE_LOG_LEVEL', 'INFO').upper()

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s'
)
logger = logging.getLogger('ObjectStoreFS')
logger.setLevel(LOG_LEVEL)

def time_function(func_name, start_time):
    """
    Helper function for timing operations.

    Calculates and logs the elapsed time for a function call.

    Args:
        func_name (str): Name of the function being timed
        start_time (float): Start time from time.time()

    Returns:
        float: Elapsed time in seconds
    """
    elapsed = time.time() - start_time
    logger.debug(f"{func_name} completed in {elapsed:.4f} seconds")
    return elapsed

def trace_op(operation, path, **details):
    """
    Trace a file operation for debugging purposes.

    Logs the operation and its arguments when tracing is enabled through the
    OBJSTORE_FUSE_TRACE_OPS environment variable or :func:`enable_tracing`.

    Args:
        operation (str): The file operation being performed
        path (str): The path of the file being operated on
        **details: Additional details to log
    """
    if TRACE_OPERATIONS:
        detail_str = ', '.join(f"{k}={v}" for k, v in details.items())
        logger.debug(f"TRACE: {operation} on {path} {detail_str}")

def enable_tracing():
    """Turn on operation tracing for the rest of the process."""
    global TRACE_OPERATIONS
    TRACE_OPERATIONS = True
    logger.setLevel(logging.DEBUG)
