"""
Configuration settings management
Centralized configuration using environment variables
"""
import os
from pathlib import Path
from functools import lru_cache
from dotenv import load_dotenv


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables"""

    # LLM configuration
    llm_base_url: str
    llm_api_key: str
    llm_model: str = "gemini-2.5-flash"
    llm_timeout: float = 120.0
    llm_temperature: float = 0.7
    llm_max_tokens: int = 8192

    # Persistence configuration
    data_dir: Path
    storage_namespace: str = "intelligent-notebook"

    # URL ingestion configuration
    scraper_timeout: float = 30.0
    scraper_use_browser: bool = True
    scraper_max_chars: int = 200000

    log_level: str = "INFO"

    def __init__(self):
        """Load settings from environment variables"""
        # Load .env file from project root
        project_root = Path(__file__).parent.parent.parent
        env_path = project_root / '.env'
        if env_path.exists():
            load_dotenv(env_path)
        else:
            load_dotenv()

        # LLM settings
        self.llm_base_url = os.getenv(
            'BASE_URL', 'https://generativelanguage.googleapis.com/v1beta/openai'
        )
        self.llm_api_key = os.getenv('API_KEY', '')
        self.llm_model = os.getenv('LLM_MODEL', 'gemini-2.5-flash')
        self.llm_timeout = float(os.getenv('LLM_TIMEOUT', '120.0'))
        self.llm_temperature = float(os.getenv('LLM_TEMPERATURE', '0.7'))
        self.llm_max_tokens = int(os.getenv('LLM_MAX_TOKENS', '8192'))

        # The OpenAI client appends /chat/completions itself
        if self.llm_base_url:
            self.llm_base_url = self.llm_base_url.rstrip('/')

        # Persistence settings
        self.data_dir = Path(os.getenv('DATA_DIR', str(project_root / '.data')))
        self.storage_namespace = os.getenv('STORAGE_NAMESPACE', 'intelligent-notebook')

        # URL ingestion settings
        self.scraper_timeout = float(os.getenv('SCRAPER_TIMEOUT', '30.0'))
        self.scraper_use_browser = _env_flag('SCRAPER_USE_BROWSER', True)
        self.scraper_max_chars = int(os.getenv('SCRAPER_MAX_CHARS', '200000'))

        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

        # Validate required settings
        self._validate()

    def _validate(self):
        """Validate required settings"""
        required = {
            'API_KEY': self.llm_api_key,
            'LLM_MODEL': self.llm_model,
        }

        missing = [key for key, value in required.items() if not value]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}\n"
                f"Please set them in .env file or environment variables"
            )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
