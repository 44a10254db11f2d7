"""
Structured logging configuration using structlog.

Provides JSON-structured logs for accounting runs, including:
- Timestamp
- Log level
- Component name
- Input/output snapshots (hashed for large arrays)
- Memory usage
"""

import structlog
import logging
import sys
import hashlib
import psutil
import numpy as np
import pandas as pd
from typing import Any, Dict, Optional


def hash_array(arr: np.ndarray) -> str:
    """Hash a numpy array for logging without dumping all data."""
    if arr.size == 0:
        return "empty"

    if arr.dtype == np.object_:
        return f"object_array_size_{arr.size}"

    data_hash = hashlib.md5(np.ascontiguousarray(arr).tobytes()).hexdigest()[:8]
    return f"{data_hash}_shape_{arr.shape}_dtype_{arr.dtype}"


def get_memory_usage() -> float:
    """Get current process memory usage in MB."""
    process = psutil.Process()
    return process.memory_info().rss / 1024 / 1024


class DataSnapshotProcessor:
    """Summarize inputs and outputs for logging."""

    @staticmethod
    def process_data(data: Any, max_size: int = 20) -> Dict[str, Any]:
        """
        Process data for logging, hashing large arrays.

        Args:
            data: Data to process
            max_size: Maximum number of elements logged verbatim

        Returns:
            Processed data suitable for JSON logging
        """
        if data is None:
            return {"type": "none"}

        if isinstance(data, (pd.Series, pd.DataFrame)):
            return {
                "type": type(data).__name__,
                "shape": data.shape,
                "columns": list(data.columns) if isinstance(data, pd.DataFrame) else None,
                "index_type": type(data.index).__name__,
            }

        if isinstance(data, np.ndarray):
            snapshot = {
                "type": "ndarray",
                "shape": data.shape,
                "dtype": str(data.dtype),
            }
            if data.size > max_size:
                snapshot["hash"] = hash_array(data)
                if data.dtype.kind in "iuf":
                    snapshot["min"] = float(np.nanmin(data))
                    snapshot["max"] = float(np.nanmax(data))
            else:
                snapshot["data"] = data.tolist()
            return snapshot

        if isinstance(data, (int, float, str, bool)):
            return {"type": type(data).__name__, "value": data}

        if isinstance(data, (list, tuple)):
            if len(data) > max_size:
                return {"type": type(data).__name__, "size": len(data)}
            return {"type": type(data).__name__, "data": list(data)}

        return {"type": type(data).__name__, "repr": str(data)[:100]}


def configure_structlog(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for log output
    """
    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stderr)
    logging.basicConfig(
        format="%(message)s",
        handlers=[handler],
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class InstrumentedLogger:
    """
    Logger that attaches data snapshots and memory usage to records.
    """

    def __init__(self, name: str):
        """Initialize instrumented logger."""
        self.logger = get_logger(name)
        self.snapshot_processor = DataSnapshotProcessor()

    def log_data_transform(
        self,
        stage: str,
        input_data: Any = None,
        output_data: Any = None,
        metadata: Optional[Dict] = None,
    ):
        """
        Log a data transformation with snapshots.

        Args:
            stage: Stage name (e.g., "compute_accounting")
            input_data: Input to the transformation
            output_data: Output of the transformation
            metadata: Additional fields to log
        """
        log_data = {
            "stage": stage,
            "memory_mb": get_memory_usage(),
        }

        if input_data is not None:
            log_data["input"] = self.snapshot_processor.process_data(input_data)

        if output_data is not None:
            log_data["output"] = self.snapshot_processor.process_data(output_data)

        if metadata:
            log_data.update(metadata)

        self.logger.info("data_transform", **log_data)

    def log_validation_error(
        self,
        stage: str,
        error: str,
        data: Any = None,
        metadata: Optional[Dict] = None,
    ):
        """
        Log a validation error with context.

        Args:
            stage: Stage where validation failed
            error: Error description
            data: Data that failed validation
            metadata: Additional context (bar index, offending value)
        """
        log_data = {
            "stage": stage,
            "error": error,
            "memory_mb": get_memory_usage(),
        }

        if data is not None:
            log_data["failed_data"] = self.snapshot_processor.process_data(data)

        if metadata:
            log_data.update(metadata)

        self.logger.error("validation_error", **log_data)
