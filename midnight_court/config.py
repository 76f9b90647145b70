"""
Midnight Court Configuration Module
Centralized configuration for the slide content pipeline.
"""

import os
from pathlib import Path

import yaml

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "MidnightCourt"
PRODUCT_MARK = "MIDNIGHT COURT"
APPDATA_DIR = Path(os.environ.get('APPDATA', os.path.expanduser('~/.config'))) / APP_NAME
LOGS_DIR = APPDATA_DIR / "logs"

# Repository-level config directory (YAML files)
CONFIG_FILES_DIR = Path(__file__).parent.parent / "config"

# Ensure directories exist
for directory in [APPDATA_DIR, LOGS_DIR]:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass  # Read-only home; file logging is skipped in logging_config

# Logging
LOG_FILE = LOGS_DIR / "midnight_court.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Input Limits (case description)
MIN_INPUT_CHARS = 100
MAX_INPUT_CHARS = 3000

# Deck Limits for generated decks
MIN_GENERATED_SLIDES = 1
MAX_GENERATED_SLIDES = 8
MAX_BLOCKS_PER_SLIDE = 5

# Suggested slide count bounds (Input Analyzer)
MIN_SUGGESTED_SLIDES = 3
MAX_SUGGESTED_SLIDES = 8

# LLM Configuration
DEFAULT_LLM_PROVIDER = os.environ.get('MIDNIGHT_COURT_LLM_PROVIDER', 'gemini')
DEFAULT_MODEL_NAME = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4000
LLM_TIMEOUT_SECONDS = 120

# Provider endpoints
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
OPENAI_API_BASE = "https://api.openai.com/v1"
GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY', '')
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')

# HTTP function shells (proxies) used by the mobile app; see ai.providers
OPENAI_FUNCTION_URL = os.environ.get('MIDNIGHT_COURT_OPENAI_FUNCTION_URL', '')
GEMINI_FUNCTION_URL = os.environ.get('MIDNIGHT_COURT_GEMINI_FUNCTION_URL', '')

# Image search / fetch
PEXELS_API_KEY = os.environ.get('PEXELS_API_KEY', '')
UNSPLASH_API_KEY = os.environ.get('UNSPLASH_API_KEY', '')
IMAGE_SEARCH_PER_PAGE = 20
IMAGE_FETCH_TIMEOUT_SECONDS = 15

# Refinement retry policy (caller side)
GENERATION_MAX_ATTEMPTS = 2
GENERATION_BACKOFF_SECONDS = 1.0

# --- Model Configuration System ---
MODEL_CONFIG_FILE = CONFIG_FILES_DIR / "models.yaml"
MODEL_CONFIGS = {}

def load_model_configs():
    """Loads model configurations from config/models.yaml."""
    global MODEL_CONFIGS
    try:
        with open(MODEL_CONFIG_FILE, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
            MODEL_CONFIGS = data.get('models', {}) or {}
        if DEBUG_MODE and MODEL_CONFIGS:
            from midnight_court.logging_config import debug_log
            debug_log(f"[Config] Loaded {len(MODEL_CONFIGS)} model configurations from {MODEL_CONFIG_FILE}")
    except FileNotFoundError:
        if DEBUG_MODE:
            from midnight_court.logging_config import debug_log
            debug_log(f"[Config] WARNING: Model config file not found at {MODEL_CONFIG_FILE}. Using fallback values.")
        MODEL_CONFIGS = {}
    except Exception as e:
        from midnight_court.logging_config import debug_log
        debug_log(f"[Config] ERROR: Failed to load or parse model config file: {e}")
        MODEL_CONFIGS = {}

def get_model_config(model_name: str) -> dict:
    """
    Returns the generation settings for a specific model, with fallbacks.

    Args:
        model_name: The name of the model (e.g., 'gemini-2.5-flash').

    Returns:
        A dictionary with 'temperature' and 'max_tokens' (and any extra keys
        declared in models.yaml).
    """
    if not MODEL_CONFIGS:
        load_model_configs()

    # 1. Exact model name
    if model_name in MODEL_CONFIGS:
        return MODEL_CONFIGS[model_name]

    # 2. Family match (e.g., 'gemini-2.5-flash-lite' -> 'gemini-2.5-flash')
    for name, config in MODEL_CONFIGS.items():
        if model_name.startswith(name) or name.startswith(model_name):
            if DEBUG_MODE:
                from midnight_court.logging_config import debug_log
                debug_log(f"[Config] Found partial match for '{model_name}': using config for '{name}'.")
            return config

    # 3. Default model
    if DEFAULT_MODEL_NAME in MODEL_CONFIGS:
        return MODEL_CONFIGS[DEFAULT_MODEL_NAME]

    # 4. Hard-coded fallback
    return {
        'temperature': DEFAULT_TEMPERATURE,
        'max_tokens': DEFAULT_MAX_TOKENS,
    }

# Load configs on module import
load_model_configs()
# --- End Model Configuration System ---

# Deck templates (prompt structures per case type); built-in fallbacks live
# in midnight_court.generation.deck_templates
DECK_TEMPLATES_FILE = CONFIG_FILES_DIR / "deck_templates.yaml"
