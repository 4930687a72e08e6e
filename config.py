"""Settings read from the environment (.env supported)."""
import os

from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Tables
QUESTIONS_TABLE = os.getenv("QUESTIONS_TABLE", "preguntas_examen")
ANSWERS_TABLE = os.getenv("ANSWERS_TABLE", "respuestas_examen")
RESULTS_TABLE = os.getenv("RESULTS_TABLE", "resultados_examen")

# Exam
PAGE_SIZE = int(os.getenv("PAGE_SIZE", "10"))
TICK_INTERVAL_SECONDS = float(os.getenv("TICK_INTERVAL_SECONDS", "1.0"))

# Review read-after-write polling
REVIEW_POLL_ATTEMPTS = int(os.getenv("REVIEW_POLL_ATTEMPTS", "5"))
REVIEW_POLL_DELAY_SECONDS = float(os.getenv("REVIEW_POLL_DELAY_SECONDS", "0.5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
