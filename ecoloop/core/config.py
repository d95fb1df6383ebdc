from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    PROJECT_NAME: str = "API Eco Loop"
    DATABASE_URL: str = "sqlite:///./ecoloop.db"

    LOG_DIR: str = "./logs"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    LOG_TO_FILE: bool = False

    # Window for the "upcoming tasks" view, in days
    UPCOMING_WINDOW_DAYS: int = 7
    SEED_TASK_TEMPLATES: bool = True


settings = Settings()
