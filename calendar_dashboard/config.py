from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Missing OAuth values only surface once Google rejects a call.
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None
    GOOGLE_REDIRECT_URI: str | None = None  # e.g. http://localhost:3000/oauth2callback

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    USER_STORE_PATH: str = "db.json"

    RATE_LIMIT_MAX_REQUESTS: int = 60
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

settings = Settings()
