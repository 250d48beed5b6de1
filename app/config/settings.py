from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for stock updates and admin-only writes under RLS

    # AI gateway (OpenAI-compatible chat completions endpoint)
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1"
    ai_gateway_api_key: Optional[str] = None
    ai_model: str = "google/gemini-2.5-flash"
    ai_timeout_seconds: float = 60.0

    # Store
    store_name: str = "Sandeep Enterprises"
    store_contact_phone: str = "+91 96617 20706"
    currency_symbol: str = "₹"
    delivery_fee_standard: float = 50.0
    delivery_fee_express: float = 150.0
    delivery_fee_pickup: float = 0.0
    password_reset_redirect_url: str = "http://localhost:5173/reset-password"
    auth_redirect_url: str = "http://localhost:5173/"

    # Realtime notifications
    realtime_enabled: bool = False
    notifications_max_items: int = 500

    # App
    app_name: str = "storefront-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    ai_rate_limit: str = "20/minute"
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
