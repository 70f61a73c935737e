from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables"""
    
    # Logging
    LOG_LEVEL: str = "INFO"
    
    # Calendar-day normalisation for streaks ("UTC" or an IANA zone name)
    REFERENCE_TIMEZONE: str = "UTC"
    
    # Difficulty adviser configuration
    MIN_PERFORMANCE_HISTORY: int = 3
    DEFAULT_DIFFICULTY: str = "medium"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
