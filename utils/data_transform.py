"""
Data transformation utilities for API responses.
"""

from typing import Dict, Any
from datetime import datetime, timezone
import numpy as np


class DataTransformer:
    """Utility class for transforming data between different formats."""

    @staticmethod
    def serialize_numpy(obj: Any) -> Any:
        """
        Convert numpy types to Python native types for JSON serialization.

        Args:
            obj: Object that may contain numpy types

        Returns:
            Object with numpy types converted to Python types
        """
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, dict):
            return {key: DataTransformer.serialize_numpy(value) for key, value in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [DataTransformer.serialize_numpy(item) for item in obj]
        else:
            return obj


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResponseBuilder:
    """Helper class for building consistent API responses."""

    @staticmethod
    def success(data: Any, message: str = "Success") -> Dict[str, Any]:
        """Build a success response."""
        return {
            "success": True,
            "message": message,
            "data": DataTransformer.serialize_numpy(data),
            "timestamp": _utc_timestamp()
        }

    @staticmethod
    def error(message: str, error_code: str = "UNKNOWN_ERROR") -> Dict[str, Any]:
        """Build an error response."""
        return {
            "success": False,
            "error": {
                "message": message,
                "code": error_code,
                "timestamp": _utc_timestamp()
            }
        }
