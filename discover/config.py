"""
Configuration module for the Discover service.

Loads environment variables and provides configuration singletons.
Uses pydantic for validation.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All values come from .env file or system environment.
    Type hints provide validation (pydantic converts types automatically).
    """

    # ============================================================
    # FIREBASE CONFIGURATION (REQUIRED)
    # ============================================================
    FIREBASE_PROJECT_ID: str
    """Firebase project ID. Find in Firebase Console → Project Settings."""

    GOOGLE_APPLICATION_CREDENTIALS: str = "/config/serviceAccountKey.json"
    """Path to Firebase service account JSON file."""

    # ============================================================
    # REQUEST BUDGET
    # ============================================================
    REQUEST_DEADLINE: float = 10.0
    """Seconds a browse request may run before it is abandoned."""

    STORE_TIMEOUT: float = 5.0
    """Per-call timeout (seconds) passed to Firestore reads and writes."""

    MAX_CANDIDATES: int = 50000
    """Safety cap on profile rows scanned per browse request (logged when hit)."""

    QUERY_BATCH_SIZE: int = 500
    """Profile rows read per Firestore cursor page."""

    # ============================================================
    # PAGINATION / RANKING
    # ============================================================
    DEFAULT_PAGE_SIZE: int = 20
    """Page size used when the client does not send a limit."""

    MAX_PAGE_SIZE: int = 50
    """Upper bound on limit for the paged list view."""

    MAX_MAP_PAGE_SIZE: int = 500
    """Upper bound on limit for the map view."""

    DEFAULT_FAME_RATING: int = 50
    """Rating used for profiles that have neither a rating nor counts."""

    # ============================================================
    # SECURITY CONFIGURATION
    # ============================================================
    SERVICE_TOKEN: Optional[str] = None
    """Shared secret for authenticating requests from the API gateway."""

    # ============================================================
    # SERVER CONFIGURATION
    # ============================================================
    PORT: int = 8000
    """Port to run FastAPI server on. Default: 8000."""

    HOST: str = "0.0.0.0"
    """Host to bind to. 0.0.0.0 = accessible from network."""

    DEBUG: bool = False
    """Enable debug logging. Set True for development, False for production."""

    class Config:
        """Pydantic configuration."""
        env_file = ".env"  # Read from .env file
        case_sensitive = True  # Variable names are case-sensitive
        extra = "ignore"  # Ignore extra env vars not defined above


# ============================================================
# SINGLETON INSTANCE
# ============================================================
# Load config once at startup, reuse throughout app
config = Config()


# ============================================================
# VALIDATION AT STARTUP
# ============================================================
def validate_config() -> dict:
    """
    Validate that required config values are set and consistent.

    Called at app startup to fail fast if config is incomplete.

    Returns:
        dict: Status of each checked area

    Raises:
        ValueError: If required config is missing or inconsistent
    """
    errors = []

    if not config.FIREBASE_PROJECT_ID:
        errors.append("FIREBASE_PROJECT_ID is required")

    if config.MAX_PAGE_SIZE <= 0 or config.MAX_MAP_PAGE_SIZE <= 0:
        errors.append("MAX_PAGE_SIZE and MAX_MAP_PAGE_SIZE must be positive")

    if not 0 < config.DEFAULT_PAGE_SIZE <= config.MAX_PAGE_SIZE:
        errors.append("DEFAULT_PAGE_SIZE must be between 1 and MAX_PAGE_SIZE")

    if config.QUERY_BATCH_SIZE <= 0 or config.MAX_CANDIDATES <= 0:
        errors.append("QUERY_BATCH_SIZE and MAX_CANDIDATES must be positive")

    if config.STORE_TIMEOUT > config.REQUEST_DEADLINE:
        errors.append("STORE_TIMEOUT must not exceed REQUEST_DEADLINE")

    if not 0 <= config.DEFAULT_FAME_RATING <= 100:
        errors.append("DEFAULT_FAME_RATING must be within 0-100")

    if errors:
        raise ValueError(f"Configuration errors:\n" + "\n".join([f"  - {e}" for e in errors]))

    return {
        "firebase": "✓ Configured" if config.FIREBASE_PROJECT_ID else "✗ Missing",
        "service_token": "✓ Configured" if config.SERVICE_TOKEN else "✗ Not set",
        "page_sizes": f"{config.DEFAULT_PAGE_SIZE}/{config.MAX_PAGE_SIZE}/{config.MAX_MAP_PAGE_SIZE}",
        "deadline": f"{config.REQUEST_DEADLINE}s (store {config.STORE_TIMEOUT}s)",
    }


if __name__ == "__main__":
    """Allow testing config by running: python -m discover.config"""
    try:
        status = validate_config()
        print("✅ Configuration is valid!")
        print("\nConfiguration Status:")
        for key, value in status.items():
            print(f"  {key}: {value}")
    except ValueError as e:
        print(f"❌ Configuration error:\n{e}")
        exit(1)
