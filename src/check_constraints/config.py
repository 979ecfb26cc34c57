from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    default_dialect: str = "postgresql"
    name_prefix: str = "CK"
    log_level: str = "INFO"
    log_format: str = "json"
    log_service_name: str = "check-constraints"

    model_config = SettingsConfigDict(
        env_prefix="CHECK_CONSTRAINTS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
