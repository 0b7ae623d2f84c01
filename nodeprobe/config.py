"""Configuration management for the nodeprobe application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

class Config:
    """Application configuration with sensible defaults."""

    # API
    API_KEY: str = os.getenv("NODEPROBE_API_KEY", "nodeprobe-secret")
    API_HOST: str = os.getenv("NODEPROBE_API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("NODEPROBE_API_PORT", "8080"))

    # Node store
    REGISTRY_PATH: str = os.getenv("NODEPROBE_REGISTRY_PATH", "clusters/node-registry.json")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    LOG_FILE: str = os.getenv("NODEPROBE_LOG_FILE", "")

    # Security
    REDACT_KEYS: tuple = ("api_key", "password", "credential", "secret", "token")

    # Timestamp format used in probe responses
    TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        required = {
            "NODEPROBE_API_KEY": cls.API_KEY,
            "NODEPROBE_REGISTRY_PATH": cls.REGISTRY_PATH,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")
