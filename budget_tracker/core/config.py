from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "Budget Tracker"
    ENV: str = "dev"

    # 기본 SQLite 파일 DB: <project>/data/budget-tracker.db (CWD와 무관한 절대경로)
    _default_db_path = Path(__file__).resolve().parents[2] / "data" / "budget-tracker.db"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    # CSV 내보내기 날짜 렌더링 기준 타임존
    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="BUDGET_", case_sensitive=False)


settings = Settings()
