"""Configuration management"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class LLMConfig(BaseSettings):
    """Text-generation API configuration"""
    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore")

    api_key: str = Field("", description="API key for the OpenAI-compatible endpoint")
    base_url: str = Field("https://api.openai.com/v1")
    model: str = Field("gpt-4o-mini")
    timeout: int = Field(60)
    max_retries: int = Field(3)
    temperature: float = Field(0.1)
    max_tokens: int = Field(4000)


class DatabaseConfig(BaseSettings):
    """Database configuration"""
    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")

    url: str = Field("sqlite:///./cv_tailor.db")

    @property
    def path(self) -> str:
        return self.url.replace("sqlite:///", "")


class PipelineConfig(BaseSettings):
    """Tailoring pipeline configuration"""
    model_config = SettingsConfigDict(env_prefix="PIPELINE_", extra="ignore")

    # Cache TTLs (seconds)
    requirements_ttl: float = Field(3600)
    requirements_fallback_ttl: float = Field(60)
    relevant_experience_ttl: float = Field(1800)
    cache_cleanup_interval: float = Field(600)

    # Task runner
    task_max_attempts: int = Field(3)
    task_min_wait: float = Field(1.0)
    task_max_wait: float = Field(30.0)
    task_timeout: float = Field(300)
    import_max_attempts: int = Field(2)

    # Skill filtering and structure
    skill_min_score: float = Field(5)
    skill_max_count: int = Field(20)
    detail_score_threshold: float = Field(10)

    # Relevance scoring weights
    weight_required_mention: float = Field(10)
    weight_preferred_mention: float = Field(5)
    weight_responsibility_match: float = Field(8)
    weight_current_position: float = Field(3)
    weight_recent_position: float = Field(2)
    recent_position_years: float = Field(2)
    score_required_skill: float = Field(20)
    score_required_proficiency_bonus: float = Field(5)
    score_preferred_skill: float = Field(10)
    score_preferred_proficiency_bonus: float = Field(3)
    score_related_skill: float = Field(8)
    score_other_skill: float = Field(1)


class AppConfig(BaseSettings):
    """Application configuration"""
    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    name: str = Field("CV Tailor")
    version: str = Field("1.0.0")
    debug: bool = Field(False)
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_dir: str = Field("logs", validation_alias="LOG_DIR")


class Settings:
    """Global settings"""

    def __init__(self):
        self.app = AppConfig()
        self.llm = LLMConfig()
        self.database = DatabaseConfig()
        self.pipeline = PipelineConfig()


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the settings instance"""
    return settings
