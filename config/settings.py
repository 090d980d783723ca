"""ShouldCost configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets are loaded via Firebase Secrets Manager (production) or environment variables (emulator).
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, model names, thresholds)
# Secrets should come from Firebase Secrets Manager or environment variables
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Note: Secrets (OPENAI_API_KEY) should be accessed via config.secrets module,
    not directly from this class. The openai_api_key property delegates to the
    secrets module.
    """

    # LLM Configuration (non-secrets)
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o"))
    llm_temperature: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.1")))
    embedding_model: str = field(default_factory=lambda: os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"))

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Token budgets per pipeline stage
    classify_max_tokens: int = field(default_factory=lambda: int(os.getenv("CLASSIFY_MAX_TOKENS", "500")))
    analysis_max_tokens: int = field(default_factory=lambda: int(os.getenv("ANALYSIS_MAX_TOKENS", "16000")))
    material_max_tokens: int = field(default_factory=lambda: int(os.getenv("MATERIAL_MAX_TOKENS", "8000")))
    report_max_tokens: int = field(default_factory=lambda: int(os.getenv("REPORT_MAX_TOKENS", "2500")))

    # Similarity search
    material_similarity_threshold: float = field(default_factory=lambda: float(os.getenv("MATERIAL_SIMILARITY_THRESHOLD", "0.6")))
    historical_similarity_threshold: float = field(default_factory=lambda: float(os.getenv("HISTORICAL_SIMILARITY_THRESHOLD", "0.5")))
    comparables_limit: int = field(default_factory=lambda: int(os.getenv("COMPARABLES_LIMIT", "5")))

    # Costing defaults
    fallback_material_price: float = field(default_factory=lambda: float(os.getenv("FALLBACK_MATERIAL_PRICE", "1.0")))
    default_category: str = field(default_factory=lambda: os.getenv("DEFAULT_CATEGORY", "default"))
    default_subcategory: str = field(default_factory=lambda: os.getenv("DEFAULT_SUBCATEGORY", "general"))
    classification_fallback_confidence: float = 0.5
    default_currency: str = field(default_factory=lambda: os.getenv("DEFAULT_CURRENCY", "USD"))
    default_estimated_unit_cost: float = 1.0
    min_raw_material_fraction: float = field(default_factory=lambda: float(os.getenv("MIN_RAW_MATERIAL_FRACTION", "0.01")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret value (use openai_api_key property instead)
    _openai_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key from Firebase Secrets Manager or environment.

        This property uses the unified secrets module for consistent access
        across emulator and production environments.
        """
        if self._openai_api_key is None:
            from config.secrets import get_openai_api_key
            self._openai_api_key = get_openai_api_key()
        return self._openai_api_key

    def validate(self) -> None:
        """Validate required settings are present.

        Raises:
            ValueError: If required settings are missing or inconsistent.
        """
        if not self.openai_api_key and not self.use_firebase_emulators:
            raise ValueError("OPENAI_API_KEY is required in production")
        if not 0 < self.min_raw_material_fraction < 1:
            raise ValueError("MIN_RAW_MATERIAL_FRACTION must be between 0 and 1")

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Singleton settings instance
settings = Settings()
