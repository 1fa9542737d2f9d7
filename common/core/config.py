from typing import Optional, List, Dict
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "tokenmeter"
    api_version: str = "v1"
    debug: bool = False

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "tokenmeter"
    db_use_nullpool: bool = False
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def async_database_url(self) -> str:
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://")

    # OpenTelemetry
    otel_service_name: str = "tokenmeter-api"
    otel_service_version: str = "0.1.0"
    # OTLP/HTTP collector, e.g. https://api.axiom.co/v1/traces. Spans stay local when unset.
    otel_exporter_endpoint: Optional[str] = None
    otel_exporter_headers: Dict[str, str] = {}

    # Rate limiting (SlowAPI)
    rate_limit_storage_uri: str = "memory://"
    rate_limit_defaults: List[str] = ["10/second", "300/minute"]

    # Billing - Stripe (payments + metering)
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_meter_event_name: str = "transformationtokensmeter"
    # Stripe price IDs per plan
    stripe_price_id_pay_as_you_go: str = "price_pay_as_you_go_REPLACE_ME"
    stripe_price_id_pro_unlimited: str = "price_pro_unlimited_REPLACE_ME"
    stripe_price_id_team: str = "price_team_REPLACE_ME"
    stripe_price_id_enterprise: str = "price_enterprise_REPLACE_ME"

    # Plans offered on the pricing endpoint
    enabled_individual_plans: List[str] = ["pay_as_you_go", "pro_unlimited"]
    enabled_team_plans: List[str] = ["team", "enterprise"]

    # Checkout and customer portal redirects
    app_base_url: str = "http://localhost:3000"
    checkout_trial_period_days: int = 14

    # Webhook reconciliation
    webhook_owner_retry_delay_seconds: float = 2.0

    # Meter reporting retry schedule
    meter_report_max_attempts: int = 3
    meter_report_initial_delay_seconds: float = 1.0

    # Usage endpoint
    recent_usage_limit: int = 20

    @property
    def stripe_price_ids(self) -> Dict[str, str]:
        return {
            "pay_as_you_go": self.stripe_price_id_pay_as_you_go,
            "pro_unlimited": self.stripe_price_id_pro_unlimited,
            "team": self.stripe_price_id_team,
            "enterprise": self.stripe_price_id_enterprise,
        }

    @property
    def docs_enabled(self) -> bool:
        """Only expose OpenAPI docs in local development."""
        return self.environment == Environment.LOCAL

    @property
    def cors_allowed_origins(self) -> List[str]:
        """Auto-select CORS origins based on environment."""
        if self.environment == Environment.LOCAL:
            return [
                "http://localhost:3000",
                "http://localhost:3001",
            ]
        return []


def load_settings(**overrides) -> Settings:
    """Build settings once at process start; pass the result down explicitly."""
    return Settings(**overrides)
