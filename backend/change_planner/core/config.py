from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Trip Change Planner"
    environment: str = "local"
    log_level: str = "INFO"

    # Planner backend: none | mock | ollama | openai
    llm_provider: str = "none"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.1"
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.deepseek.com"
    openai_model: str = "deepseek-chat"
    planner_timeout_seconds: int = 30

    use_change_planner_agent: bool = True
    max_iterations: int = 5
    max_tool_calls_per_round: int = 4

    tool_timeout_seconds: int = 8
    visa_cache_ttl_seconds: int = 24 * 60 * 60
    makcorps_jwt: str | None = None

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env")
    return Settings()


settings = get_settings()
