"""Central environment-driven settings for the broker service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "sellerpay-broker"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_base_url: str = "https://api.razorpay.com"
    currency: str = "INR"

    clerk_secret_key: str = ""
    clerk_jwt_key: str = ""
    clerk_authorized_parties: list[str] = []
    clerk_api_url: str = "https://api.clerk.com"

    upstream_timeout_seconds: float = 10.0
    disconnect_poll_seconds: float = 0.25

    # Paths that skip the identity provider gate. /health stays gated unless listed.
    auth_exempt_paths: list[str] = ["/metrics"]
    cors_allow_origins: list[str] = ["*"]

    tracing_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
