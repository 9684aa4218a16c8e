"""
Configuration validation for the homework solving backend.
Validates prompt files, the AI gateway, storage, database, and settings on startup.
"""
import requests
from typing import List, Dict, Any

from core.config import VALIDATE_GATEWAY_ON_STARTUP


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""
    pass


class ConfigValidator:
    """Validates system configuration before pipeline execution."""

    REQUIRED_PROMPTS = [
        "question_classification.txt",
        "batch_solving.txt",
        "adaptive_solving.txt",
        "graph_classification.txt",
        "illustration_prompt.txt",
    ]

    def __init__(self, check_gateway: bool = True):
        self.check_gateway = check_gateway
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        self._validate_prompt_files()
        self._validate_gateway_settings()
        if self.check_gateway:
            self._validate_gateway_connection()
        self._validate_storage_settings()
        self._validate_database()
        self._validate_config_values()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def _validate_prompt_files(self):
        """Missing prompts fall back to built-in defaults, so these are warnings."""
        from core.config import PROMPTS_DIR

        if not PROMPTS_DIR.exists():
            self.warnings.append(
                f"Prompts directory not found: {PROMPTS_DIR}. Built-in prompts will be used."
            )
            return

        for prompt_file in self.REQUIRED_PROMPTS:
            path = PROMPTS_DIR / prompt_file
            if not path.exists():
                self.warnings.append(
                    f"Prompt file missing: {prompt_file}. Built-in prompt will be used."
                )
            elif path.stat().st_size == 0:
                self.warnings.append(f"Prompt file is empty: {prompt_file}")

    def _validate_gateway_settings(self):
        from core.config import AI_GATEWAY_API_KEY, AI_GATEWAY_BASE_URL

        if not AI_GATEWAY_BASE_URL:
            self.errors.append("AI_GATEWAY_BASE_URL is not set.")
        if not AI_GATEWAY_API_KEY:
            self.errors.append("AI_GATEWAY_API_KEY is not set. Add it to your .env file.")

    def _validate_gateway_connection(self):
        """Check that the AI gateway is reachable and accepts the key."""
        from core.config import AI_GATEWAY_API_KEY, AI_GATEWAY_BASE_URL

        if not AI_GATEWAY_BASE_URL or not AI_GATEWAY_API_KEY:
            return

        try:
            response = requests.get(
                f"{AI_GATEWAY_BASE_URL.rstrip('/')}/models",
                headers={"Authorization": f"Bearer {AI_GATEWAY_API_KEY}"},
                timeout=5,
            )
            if response.status_code in (401, 403):
                self.errors.append("AI gateway rejected the API key. Check AI_GATEWAY_API_KEY.")
                return
            response.raise_for_status()
        except requests.exceptions.ConnectionError:
            self.errors.append(
                f"Cannot connect to AI gateway at {AI_GATEWAY_BASE_URL}. "
                "Check the URL and network access."
            )
        except requests.exceptions.Timeout:
            self.errors.append(f"AI gateway connection timeout at {AI_GATEWAY_BASE_URL}.")
        except Exception as e:
            self.errors.append(f"AI gateway connection error: {e}")

    def _validate_storage_settings(self):
        """Storage is only needed for illustrations."""
        from core.config import STORAGE_API_KEY, STORAGE_BUCKET_ID, STORAGE_PROJECT_ID

        missing = [
            name for name, value in (
                ("STORAGE_PROJECT_ID", STORAGE_PROJECT_ID),
                ("STORAGE_API_KEY", STORAGE_API_KEY),
                ("STORAGE_BUCKET_ID", STORAGE_BUCKET_ID),
            )
            if not value
        ]
        if missing:
            self.warnings.append(
                f"Blob storage not configured ({', '.join(missing)}). "
                "Illustration generation will fail."
            )

    def _validate_database(self):
        """Check that database is accessible and schema is initialized."""
        from core.config import DB_PATH

        if not DB_PATH.exists():
            self.warnings.append(
                f"Database file not found at {DB_PATH}. "
                "Will be created on first run."
            )
            return

        try:
            from core.database import db

            for table in ("homework_questions", "homework_solutions"):
                result = db.execute_one(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                    (table,)
                )
                if not result:
                    self.errors.append(
                        f"Required database table missing: {table}. "
                        "Run schema initialization."
                    )

        except Exception as e:
            self.errors.append(f"Database connection error: {e}")

    def _validate_config_values(self):
        """Validate configuration value ranges and types."""
        from core.config import (
            GRAPH_CHUNK_SIZE,
            ILLUSTRATION_DELAY_SECONDS,
            MAX_BATCH_SIZE,
            MIN_BATCH_SIZE,
            WEBHOOK_MAX_ATTEMPTS,
            WEBHOOK_SECRET,
            WEBHOOK_URL,
            default_config,
        )

        if MAX_BATCH_SIZE < 1:
            self.errors.append(f"MAX_BATCH_SIZE ({MAX_BATCH_SIZE}) must be >= 1")

        if MIN_BATCH_SIZE > MAX_BATCH_SIZE:
            self.warnings.append(
                f"MIN_BATCH_SIZE ({MIN_BATCH_SIZE}) is larger than MAX_BATCH_SIZE ({MAX_BATCH_SIZE})"
            )

        if GRAPH_CHUNK_SIZE < 1:
            self.errors.append(f"GRAPH_CHUNK_SIZE ({GRAPH_CHUNK_SIZE}) must be >= 1")

        if ILLUSTRATION_DELAY_SECONDS < 0:
            self.errors.append(
                f"ILLUSTRATION_DELAY_SECONDS ({ILLUSTRATION_DELAY_SECONDS}) must not be negative"
            )

        if WEBHOOK_MAX_ATTEMPTS < 1:
            self.errors.append(f"WEBHOOK_MAX_ATTEMPTS ({WEBHOOK_MAX_ATTEMPTS}) must be >= 1")

        if WEBHOOK_URL and not WEBHOOK_SECRET:
            self.warnings.append("WEBHOOK_URL is set but WEBHOOK_SECRET is empty")

        temperatures = {
            "classification": default_config.classification_temperature,
            "batch solving": default_config.batch_solving_temperature,
            "graph classification": default_config.graph_classification_temperature,
            "illustration prompt": default_config.illustration_prompt_temperature,
            "image generation": default_config.image_generation_temperature,
        }
        for stage, temperature in temperatures.items():
            if not (0.0 <= temperature <= 1.0):
                self.warnings.append(
                    f"{stage} temperature ({temperature}) outside normal range [0.0, 1.0]"
                )


# Global validator instance
config_validator = ConfigValidator(check_gateway=VALIDATE_GATEWAY_ON_STARTUP)
