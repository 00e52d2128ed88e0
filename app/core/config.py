from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "FinanceDashboard"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://localhost:8000"])

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_ENDPOINT_URL: Optional[str] = Field(default=None)  # e.g. http://localhost:8001 for DynamoDB Local
    DYNAMO_USERS_TABLE: str = Field(default="finance-users")
    DYNAMO_TRANSACTIONS_TABLE: str = Field(default="finance-transactions")
    DYNAMO_BUDGETS_TABLE: str = Field(default="finance-budgets")
    DYNAMO_SAVINGS_GOALS_TABLE: str = Field(default="finance-savings-goals")
    DYNAMO_COUNTERS_TABLE: str = Field(default="finance-counters")

    # Gemini (AI advice)
    GEMINI_API_KEY: Optional[str] = Field(default=None)
    GEMINI_MODEL: str = "gemini-2.5-flash"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
