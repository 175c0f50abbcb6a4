"""
Chat Service Configuration
Loads settings from environment variables
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment"""

    # OpenAI Configuration
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

    # Intent classifier: "auto" (LLM when a key is set), "llm" or "pattern"
    CLASSIFIER_MODE: str = os.getenv("CLASSIFIER_MODE", "auto")

    # Ollama Configuration (local text generation when OpenAI is not configured)
    OLLAMA_ENABLED: bool = _as_bool(os.getenv("OLLAMA_ENABLED", "false"))
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL: str = os.getenv("OLLAMA_MODEL", "llama3.2")

    # Amadeus (flight + hotel search)
    AMADEUS_API_URL: str = os.getenv("AMADEUS_API_URL", "https://test.api.amadeus.com")
    AMADEUS_CLIENT_ID: str = os.getenv("AMADEUS_CLIENT_ID", "")
    AMADEUS_CLIENT_SECRET: str = os.getenv("AMADEUS_CLIENT_SECRET", "")

    # Web search
    TAVILY_API_KEY: str = os.getenv("TAVILY_API_KEY", "")
    BRAVE_SEARCH_API_KEY: str = os.getenv("BRAVE_SEARCH_API_KEY", "")

    # Redis Configuration
    REDIS_ENABLED: bool = _as_bool(os.getenv("REDIS_ENABLED", "true"))
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    CONTEXT_TTL_HOURS: int = int(os.getenv("CONTEXT_TTL_HOURS", "24"))

    # Outbound HTTP
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "15"))

    # Provider prices come back in USD; shown converted (INR by default)
    PRICE_CONVERSION_RATE: float = float(os.getenv("PRICE_CONVERSION_RATE", "85"))

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_ENV: str = os.getenv("API_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Configuration
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def redis_url(self) -> str:
        """Get Redis connection URL"""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def use_openai(self) -> bool:
        """True when a usable OpenAI key is configured"""
        return bool(self.OPENAI_API_KEY) and not self.OPENAI_API_KEY.startswith("sk-your")

    @property
    def amadeus_configured(self) -> bool:
        return bool(self.AMADEUS_CLIENT_ID and self.AMADEUS_CLIENT_SECRET)


# Global settings instance
settings = Settings()
