"""
Configuration management for the homework solving backend.
Loads configuration from environment variables and .env file.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the backend directory or project root
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file if it exists
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Also try loading from backend directory
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

# Base paths
BASE_DIR = PROJECT_ROOT
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
PROMPTS_DIR = BACKEND_DIR / "prompts"
DB_PATH = Path(os.getenv("DB_PATH", str(DATA_DIR / "homework.db")))

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# AI gateway (OpenAI-compatible endpoint)
AI_GATEWAY_BASE_URL = os.getenv("AI_GATEWAY_BASE_URL", "https://ai-gateway.vercel.sh/v1")
AI_GATEWAY_API_KEY = os.getenv("AI_GATEWAY_API_KEY", "")
AI_REQUEST_TIMEOUT = float(os.getenv("AI_REQUEST_TIMEOUT", "120"))

# Models per stage
CLASSIFICATION_MODEL = os.getenv("CLASSIFICATION_MODEL", "google/gemini-2.5-flash")
BATCH_SOLVING_MODEL = os.getenv("BATCH_SOLVING_MODEL", "google/gemini-2.5-flash")
ADAPTIVE_SOLVING_MODEL = os.getenv("ADAPTIVE_SOLVING_MODEL", "google/gemini-2.0-flash")
GRAPH_CLASSIFICATION_MODEL = os.getenv("GRAPH_CLASSIFICATION_MODEL", "google/gemini-2.0-flash")
ILLUSTRATION_PROMPT_MODEL = os.getenv("ILLUSTRATION_PROMPT_MODEL", "google/gemini-2.5-flash")
IMAGE_GENERATION_MODEL = os.getenv("IMAGE_GENERATION_MODEL", "google/gemini-3-pro-image")

# Temperatures (low for classification, higher for creative image prompts)
CLASSIFICATION_TEMPERATURE = float(os.getenv("CLASSIFICATION_TEMPERATURE", "0.2"))
BATCH_SOLVING_TEMPERATURE = float(os.getenv("BATCH_SOLVING_TEMPERATURE", "0.3"))
GRAPH_CLASSIFICATION_TEMPERATURE = float(os.getenv("GRAPH_CLASSIFICATION_TEMPERATURE", "0.2"))
ILLUSTRATION_PROMPT_TEMPERATURE = float(os.getenv("ILLUSTRATION_PROMPT_TEMPERATURE", "0.5"))
ILLUSTRATION_PROMPT_MAX_TOKENS = int(os.getenv("ILLUSTRATION_PROMPT_MAX_TOKENS", "256"))
IMAGE_GENERATION_TEMPERATURE = float(os.getenv("IMAGE_GENERATION_TEMPERATURE", "0.7"))

# Batching
MAX_BATCH_SIZE = int(os.getenv("MAX_BATCH_SIZE", "5"))
MIN_BATCH_SIZE = int(os.getenv("MIN_BATCH_SIZE", "2"))  # Below this, batching is logged as suboptimal
GRAPH_CHUNK_SIZE = int(os.getenv("GRAPH_CHUNK_SIZE", "5"))
ILLUSTRATION_DELAY_SECONDS = float(os.getenv("ILLUSTRATION_DELAY_SECONDS", "1.0"))

# Blob storage (Appwrite-style REST API)
STORAGE_ENDPOINT = os.getenv("STORAGE_ENDPOINT", "https://cloud.appwrite.io/v1")
STORAGE_PROJECT_ID = os.getenv("STORAGE_PROJECT_ID", "")
STORAGE_API_KEY = os.getenv("STORAGE_API_KEY", "")
STORAGE_BUCKET_ID = os.getenv("STORAGE_BUCKET_ID", "user_files")

# Completion webhook
WEBHOOK_URL = os.getenv("WEBHOOK_URL", None)
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", "")
WEBHOOK_MAX_ATTEMPTS = int(os.getenv("WEBHOOK_MAX_ATTEMPTS", "3"))
WEBHOOK_TIMEOUT = float(os.getenv("WEBHOOK_TIMEOUT", "10"))

# API configuration
API_V1_PREFIX = "/api/v1"
INTERNAL_API_SECRET = os.getenv("INTERNAL_API_SECRET", "")
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]

# Startup validation
VALIDATE_GATEWAY_ON_STARTUP = os.getenv("VALIDATE_GATEWAY_ON_STARTUP", "true").lower() == "true"


@dataclass(frozen=True)
class PipelineConfig:
    """Models, temperatures and size limits injected into every pipeline stage."""

    classification_model: str = CLASSIFICATION_MODEL
    classification_temperature: float = CLASSIFICATION_TEMPERATURE

    batch_solving_model: str = BATCH_SOLVING_MODEL
    batch_solving_temperature: float = BATCH_SOLVING_TEMPERATURE
    max_batch_size: int = MAX_BATCH_SIZE
    min_batch_size: int = MIN_BATCH_SIZE

    adaptive_solving_model: str = ADAPTIVE_SOLVING_MODEL
    # Lower for simple (deterministic), higher for complex
    adaptive_simple_temperature: float = 0.3
    adaptive_medium_temperature: float = 0.4
    adaptive_complex_temperature: float = 0.5

    graph_classification_model: str = GRAPH_CLASSIFICATION_MODEL
    graph_classification_temperature: float = GRAPH_CLASSIFICATION_TEMPERATURE
    graph_chunk_size: int = GRAPH_CHUNK_SIZE

    illustration_prompt_model: str = ILLUSTRATION_PROMPT_MODEL
    illustration_prompt_temperature: float = ILLUSTRATION_PROMPT_TEMPERATURE
    illustration_prompt_max_tokens: int = ILLUSTRATION_PROMPT_MAX_TOKENS
    image_generation_model: str = IMAGE_GENERATION_MODEL
    image_generation_temperature: float = IMAGE_GENERATION_TEMPERATURE
    illustration_delay_seconds: float = ILLUSTRATION_DELAY_SECONDS


# Shared default configuration
default_config = PipelineConfig()
