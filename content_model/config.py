from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # Application settings
    app_name: str = "CMS Content Model"
    environment: str = "development"
    debug: bool = False

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./content_model.db"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # Admin layer
    admin_path: str = "/admin"
    user_list_key: str = "User"

    # List defaults
    default_per_page: int = 100
    max_pages: int = 10
    unique_value_max_attempts: int = 10

    # Password field hashing
    password_schemes: list[str] = ["bcrypt"]
    password_work_factor: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONTENT_MODEL_",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()
