"""Configuration module for Novel Workshop."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Configuration
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-opus-4-5-20251101")
ANALYSIS_TEMPERATURE = 0  # For structured extraction consistency
WRITING_TEMPERATURE = float(os.getenv("WRITING_TEMPERATURE", "0.8"))
MAX_OUTPUT_TOKENS = int(os.getenv("MAX_OUTPUT_TOKENS", "4096"))

# Speech (Gemini TTS)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
TTS_MODEL = os.getenv("TTS_MODEL", "gemini-2.5-flash-preview-tts")
TTS_MAX_CHARS = 4000
TTS_SAMPLE_RATE = 24000

# Chunking Configuration
WORDS_PER_CHUNK = int(os.getenv("WORDS_PER_CHUNK", "1500"))
MAX_INPUT_WORDS = 20000  # Soft limit, larger inputs only log a warning

# Writing context
CONTINUATION_CONTEXT_CHARS = 2000
PREVIOUS_SECTIONS_CONTEXT = 3

# Retry behaviour for transient API errors
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_BACKOFF_MULTIPLIER = 2

# Session persistence
SESSION_KEY = "imperium_session_v1"
SESSION_BACKEND = os.getenv("SESSION_BACKEND", "sqlite")  # "sqlite" or "file"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")

# Storage / Output Paths
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", "./output"))
DB_PATH = Path(os.getenv("DB_PATH", str(OUTPUT_DIR / "workshop.db")))
SESSIONS_DIR = OUTPUT_DIR / "sessions"
AUDIO_DIR = OUTPUT_DIR / "audio"

# Ensure output directories exist
DB_PATH.parent.mkdir(parents=True, exist_ok=True)
SESSIONS_DIR.mkdir(parents=True, exist_ok=True)
AUDIO_DIR.mkdir(parents=True, exist_ok=True)
