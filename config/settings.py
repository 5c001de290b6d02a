"""
Application settings and configuration.
"""

import os
from typing import List, Optional


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


class Settings:
    """Application settings"""
    
    # API Configuration
    api_title: str = "Bacterial Evolution Worker API"
    api_description: str = "Message-driven worker for simulating bacterial evolution under antibiotic pressure"
    api_version: str = "1.0.0"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    
    # Server Configuration
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    reload: bool = os.getenv("RELOAD", "true").lower() == "true"
    
    # CORS Configuration
    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    allow_credentials: bool = True
    allowed_methods: List[str] = ["GET", "OPTIONS"]
    allowed_headers: List[str] = ["*"]
    
    # Engine Configuration
    random_seed: Optional[int] = _optional_int("SIMULATION_SEED")
    performance_history_size: int = int(os.getenv("PERFORMANCE_HISTORY_SIZE", "100"))
    progress_interval: int = int(os.getenv("PROGRESS_INTERVAL", "5"))
    yield_interval: int = int(os.getenv("YIELD_INTERVAL", "10"))
    strict_parameter_validation: bool = os.getenv("STRICT_VALIDATION", "false").lower() == "true"
    include_error_stack: bool = os.getenv("INCLUDE_ERROR_STACK", "false").lower() == "true"
    
    # Client Configuration
    request_timeout: float = float(os.getenv("WORKER_REQUEST_TIMEOUT", "30"))  # seconds
    batch_timeout: float = float(os.getenv("WORKER_BATCH_TIMEOUT", "120"))  # seconds
    
    # Logging Configuration
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

# Create global settings instance
settings = Settings() 
