"""Central Configuration for the Journal Companion."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base Directory (Root of the project)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load Environment Variables
load_dotenv(BASE_DIR / ".env")

# LLM Settings
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))

# Turn serialization: how long a second turn waits for the first one
TURN_LOCK_TIMEOUT_SECONDS = float(os.getenv("TURN_LOCK_TIMEOUT_SECONDS", "60"))

# Store Settings
STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")  # "memory" or "firestore"
STORE_PATH = Path(os.getenv("STORE_PATH", str(BASE_DIR / ".journal_store")))
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS")
JOURNAL_USER_ID = os.getenv("JOURNAL_USER_ID", "local_user")

# Day Summarizer Settings
MAX_SUMMARY_USER_MESSAGES = 12
MAX_SUMMARY_CONTEXT_CHARS = 8000
