from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    # 项目信息
    APP_NAME: str = "Expense Tracker"
    APP_VERSION: str = "0.1.0"

    # 数据库
    DATABASE_DIR: Path = Path(__file__).resolve().parent.parent / "data"
    DATABASE_NAME: str = "expense_tracker.db"

    @property
    def DATABASE_URL(self) -> str:
        self.DATABASE_DIR.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{self.DATABASE_DIR / self.DATABASE_NAME}"

    # JWT（由外部认证服务签发，这里只做校验）
    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 天

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # 预算提醒文案中的货币符号
    CURRENCY_SYMBOL: str = "$"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
