from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    base_url: str = "http://localhost:8000"
    database_url: str = "postgresql+psycopg://app:app@db:5432/app"
    database_echo: bool = False
    # no migration tooling ships with the service; tables are created on startup
    database_create_all: bool = True
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "dev-secret-change-me"
    jwt_issuer: str = "todo-rbac-api"
    jwt_audience: str = "todo-rbac-api"
    jwt_expires_minutes: int = 60

    magic_link_expires_minutes: int = 15
    magic_link_pepper: str = "dev-pepper-change-me"

    # rate limiting (redis)
    rate_limit_enabled: bool = True
    rate_limit_auth_request_link_per_min: int = 20
    rate_limit_auth_redeem_per_min: int = 30

    # "dev" renders for a terminal, "json" for log shipping
    log_format: str = "dev"
    log_level: str = "INFO"

settings = Settings()
