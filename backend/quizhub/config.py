"""
Runtime configuration read from environment variables.

Every setting has a development default so the service boots with no
environment at all (SQLite database, the four built-in subjects, the
default admin account).
"""

import os


def _csv(value: str) -> list:
    """Split a comma-separated env value, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


# Database connection (SQLite fallback for local development)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./quizhub.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ──────────────────────────────────────────────────────────────
# Test assembly
#
# Subjects are a configured list, not derived from the question bank.
# A subject (and then each difficulty within it) needs at least
# MIN_QUESTIONS_PER_TEST questions to produce a test; each test takes
# the first TEST_SIZE matching questions.
# ──────────────────────────────────────────────────────────────
SUBJECTS = _csv(os.getenv("QUIZHUB_SUBJECTS", "JavaScript,React,Python,HTML/CSS"))
MIN_QUESTIONS_PER_TEST = int(os.getenv("QUIZHUB_MIN_QUESTIONS", "3"))
TEST_SIZE = int(os.getenv("QUIZHUB_TEST_SIZE", "5"))

# Test duration in minutes per difficulty tier
DURATION_MINUTES = {"Easy": 15, "Medium": 20, "Hard": 25}

# Seconds between timer ticks (1 Hz in production; tests shorten it)
TICK_SECONDS = float(os.getenv("QUIZHUB_TICK_SECONDS", "1.0"))

# ──────────────────────────────────────────────────────────────
# Roles
#
# Accounts whose email appears here are treated as administrators.
# Everyone else is a student.
# ──────────────────────────────────────────────────────────────
ADMIN_EMAILS = {email.lower() for email in _csv(os.getenv("QUIZHUB_ADMIN_EMAILS", "admin@test.com"))}
