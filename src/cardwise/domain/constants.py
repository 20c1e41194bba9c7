"""Centralized constants for the cardwise application.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Review Calculator ----------
STARTING_EASE = 2.5
MINIMUM_EASE = 1.3
LAPSE_PENALTY = 0.2
EASY_BONUS = 0.10
PERFECT_BONUS = 0.15
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
LAPSE_INTERVAL = 1  # days

# ---------- Mastery ----------
MASTERY_INTERVAL_DAYS = 21
MASTERY_MIN_REPETITIONS = 3

# ---------- Queue Builder ----------
QUICK_MAX_REVIEW = 10
QUICK_MAX_NEW = 3
DEFAULT_MAX_REVIEW = 50
DEFAULT_MAX_NEW = 10

# ---------- Readiness ----------
READINESS_WEIGHTS = {"new": 10, "learning": 40, "reviewing": 70, "mastered": 100}
READINESS_OVERDUE_PENALTY = 5  # points per overdue day
READINESS_FLOOR = 10

# ---------- History ----------
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_PROFILE_ID = "default"
