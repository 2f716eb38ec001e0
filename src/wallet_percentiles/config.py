import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from .retry import RetryPolicy

# Load environment variables from .env file
load_dotenv()


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    return int(value)


def _flag(value: Optional[str], default: str = "false") -> bool:
    return (value or default).strip().lower() == "true"


@dataclass
class Config:
    """Application configuration."""

    # Node RPC
    rpc_url: str

    # Explorer APIs
    blockscout_api: Optional[str] = None
    scrollscan_api: Optional[str] = None
    scrollscan_api_key: Optional[str] = None
    use_blockscout: bool = False

    # Sampling settings
    confidence_level: int = 95
    margin_of_error: float = 0.05
    population_size: Optional[int] = None
    max_sample_draws: Optional[int] = None
    unique_samples: bool = False

    # Request settings
    request_timeout: float = 30.0
    page_delay: float = 0.5  # seconds between explorer pages
    scrollscan_page_size: int = 10000
    scrollscan_max_transactions: int = 10000

    # Retry policies
    rpc_retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(max_attempts=4))
    blockscout_retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(max_attempts=20, initial_delay=10.0, backoff_factor=1.05))
    scrollscan_retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(max_attempts=6, initial_delay=1.0, backoff_factor=2.0))
    zero_result_retry: RetryPolicy = field(
        default_factory=lambda: RetryPolicy(max_attempts=6, initial_delay=2.0))

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        rpc_url = os.getenv("RPC_URL")
        if not rpc_url:
            raise ValueError("RPC_URL environment variable is required")

        use_blockscout = _flag(os.getenv("USE_BLOCKSCOUT"))
        blockscout_api = os.getenv("BLOCKSCOUT_API")
        scrollscan_api = os.getenv("SCROLLSCAN_API")
        if use_blockscout and not blockscout_api:
            raise ValueError(
                "BLOCKSCOUT_API environment variable is required when USE_BLOCKSCOUT=true")
        if not use_blockscout and not scrollscan_api:
            raise ValueError(
                "SCROLLSCAN_API environment variable is required when USE_BLOCKSCOUT is not true")

        margin_of_error = float(os.getenv("MARGIN_OF_ERROR", "0.05"))
        if not 0 < margin_of_error < 1:
            raise ValueError("MARGIN_OF_ERROR must be between 0 and 1 (exclusive)")

        return cls(
            rpc_url=rpc_url,
            blockscout_api=blockscout_api,
            scrollscan_api=scrollscan_api,
            scrollscan_api_key=os.getenv("API_KEY_SCROLL"),
            use_blockscout=use_blockscout,
            confidence_level=int(os.getenv("CONFIDENCE_LEVEL", "95")),
            margin_of_error=margin_of_error,
            population_size=_optional_int(os.getenv("POPULATION_SIZE")),
            max_sample_draws=_optional_int(os.getenv("MAX_SAMPLE_DRAWS")),
            unique_samples=_flag(os.getenv("UNIQUE_SAMPLES")),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            rpc_retry=RetryPolicy(
                max_attempts=int(os.getenv("RPC_MAX_RETRIES", "3")) + 1),
            blockscout_retry=RetryPolicy(
                max_attempts=int(os.getenv("BLOCKSCOUT_MAX_ATTEMPTS", "20")),
                initial_delay=10.0, backoff_factor=1.05),
            scrollscan_retry=RetryPolicy(
                max_attempts=int(os.getenv("SCROLLSCAN_MAX_RETRIES", "5")) + 1,
                initial_delay=1.0, backoff_factor=2.0),
            zero_result_retry=RetryPolicy(
                max_attempts=int(os.getenv("ZERO_RESULT_MAX_ATTEMPTS", "6")),
                initial_delay=2.0),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
