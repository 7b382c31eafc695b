from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_PORT: int = 8005

    # Extraction oracle (Gemini through langchain)
    GEMINI_API_KEY: str = ""
    ORACLE_PROVIDER: str = "google_genai"
    ORACLE_MODEL: str = "gemini-2.5-flash-lite"
    ORACLE_MEDIA_MODEL: str = "gemini-2.5-flash-lite"
    ORACLE_TEMPERATURE: float = 0.1
    ORACLE_TIMEOUT_SECONDS: float = 60.0
    GEMINI_API_ROOT: str = "https://generativelanguage.googleapis.com"

    # Page fetching
    FETCH_TIMEOUT_SECONDS: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()


def validate_required_keys():
    """Validate that all required API keys are present"""
    required_keys = [
        ("GEMINI_API_KEY", settings.GEMINI_API_KEY),
    ]

    missing_keys = []
    for key_name, key_value in required_keys:
        if not key_value or key_value.strip() == "":
            missing_keys.append(key_name)

    if missing_keys:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_keys)}. "
            f"Please check your .env file."
        )
