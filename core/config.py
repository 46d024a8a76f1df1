"""
Application settings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class DatabaseSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./ledger.db"
    echo: bool = False


class Settings(BaseSettings):
    """Project settings"""

    PROJECT_NAME: str = Field(default="YooKassa Payment Gateway")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


settings = Settings()
