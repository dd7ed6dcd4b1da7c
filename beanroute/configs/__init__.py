"""Application configuration.

Env-var examples (BEANROUTE_ prefix, _ nesting):
  BEANROUTE_Push_BaseUrl=https://beanroute.example.com
  BEANROUTE_Push_CheckIntervalSeconds=60
  BEANROUTE_Logging_Level=DEBUG
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from beanroute.configs.push import PushConfig


class LoggingConfig(BaseModel):
    Level: str = Field(default="INFO", description="Root log level for the beanroute logger")


class BeanRouteConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BEANROUTE_",
        env_nested_delimiter="_",
        case_sensitive=False,
        extra="ignore",
    )

    Push: PushConfig = Field(default_factory=PushConfig, description="Web Push client configuration")
    Logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")


configs = BeanRouteConfig()

__all__ = ["BeanRouteConfig", "LoggingConfig", "PushConfig", "configs"]
