import logging
import os
from dataclasses import dataclass, field
from typing import List


def _origins_from_env() -> List[str]:
    raw = os.environ.get("CORS_ORIGINS", "*")
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass(frozen=True)
class Settings:
    secret_key: str = "dev_secret_change_me_please"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    database_url: str = "sqlite:///./expense_tracker.db"
    bcrypt_rounds: int = 12
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            secret_key=os.environ.get("SECRET_KEY", cls.secret_key),
            algorithm=os.environ.get("ALGORITHM", cls.algorithm),
            access_token_expire_minutes=int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)),
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            bcrypt_rounds=int(os.environ.get("BCRYPT_ROUNDS", cls.bcrypt_rounds)),
            cors_origins=_origins_from_env(),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level),
        )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
