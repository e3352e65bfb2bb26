import os


class Settings:
    def __init__(self, **overrides) -> None:
        # SQLite file next to the process by default
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./messages.db")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))
        self.MAX_TEXT_LENGTH: int = int(os.getenv("MAX_TEXT_LENGTH", "4096"))

        for name, value in overrides.items():
            if not hasattr(self, name):
                raise TypeError(f"unknown setting: {name}")
            setattr(self, name, value)
