import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "300"))

# Fast first pass, stronger model only when diagnostics find problems
EXTRACTOR_MODEL = os.getenv("EXTRACTOR_MODEL", "gpt-4o-mini")
REFINER_MODEL = os.getenv("REFINER_MODEL", "gpt-4o")
FLOWCHART_MODEL = os.getenv("FLOWCHART_MODEL", REFINER_MODEL)

EXTRACTOR_TEMPERATURE = float(os.getenv("EXTRACTOR_TEMPERATURE", "0.2"))
REFINER_TEMPERATURE = float(os.getenv("REFINER_TEMPERATURE", "0.3"))
FLOWCHART_TEMPERATURE = float(os.getenv("FLOWCHART_TEMPERATURE", "0.4"))

SCORE_THRESHOLD = int(os.getenv("SCORE_THRESHOLD", "2"))

# Optional YAML file overriding the scoring keyword tables
KEYWORD_TABLES_PATH = os.getenv("KEYWORD_TABLES_PATH") or None
