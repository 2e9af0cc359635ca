"""Configuration management via environment variables.

Reads from .env file (via pydantic-settings) with sensible defaults.
All values can be overridden via environment variables.

Required for live API calls:
    QBO_ACCESS_TOKEN  - OAuth2 bearer token (obtained outside this package)
    QBO_REALM_ID      - QuickBooks company id

Optional:
    QBO_ENVIRONMENT        - "sandbox" (default) or "production"
    INTER_CALL_DELAY       - seconds between successive monthly report fetches
    EXPENSE_TOTAL_LABELS   - JSON list of summary labels summed into "expenses"
    PORT                   - Server port for the SSE transport
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # QuickBooks Online connection (token exchange/refresh happens elsewhere)
    qbo_environment: str = "sandbox"
    qbo_access_token: str = ""
    qbo_realm_id: str = ""
    qbo_minor_version: int = 65

    # QBO allows 10 concurrent requests per realm; we pace at 8/s
    qbo_max_requests_per_second: float = 8.0

    # Trend aggregation pacing and rate-limit fallback
    inter_call_delay: float = 0.125
    default_retry_after: float = 1.0

    # Summary rows summed into the "expenses" figure. Add
    # "Total Other Expenses" to include other expenses as well.
    expense_total_labels: list[str] = ["Total Expenses", "Total Cost of Goods Sold"]

    breakdown_limit: int = 10
    report_cache_ttl: int = 120

    # Server port for the SSE transport
    port: int = 8878

    # Strip whitespace from string fields; tokens pasted into .env
    # often carry trailing spaces or quotes
    @field_validator("qbo_access_token", "qbo_realm_id", "qbo_environment", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().strip('"').strip("'").strip()
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the shared Settings singleton."""
    global _config
    if _config is None:
        _config = Settings()
    return _config
