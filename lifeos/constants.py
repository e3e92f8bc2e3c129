"""
Application-wide constants.
Deployment-specific values can be overridden with environment variables.
"""
import os

# Reference timezone for every calendar-day calculation
DEFAULT_TIMEZONE = "Asia/Kolkata"
REFERENCE_TIMEZONE = os.getenv("LIFEOS_TIMEZONE", DEFAULT_TIMEZONE)

DEFAULT_DATABASE_URL = "sqlite:///./lifeos.db"

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/lifeos"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

# Ledger handle used by the HTTP layer
DEFAULT_LEDGER_ID = int(os.getenv("LIFEOS_LEDGER_ID", "1"))

CORS_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Daily log status
LOG_STATUS_PENDING = "pending"
LOG_STATUS_COMPLETED = "completed"
LOG_STATUS_SKIPPED = "skipped"

# Routine ordering: pending first, then skipped, then completed
LOG_STATUS_SORT_ORDER = {
    LOG_STATUS_PENDING: 0,
    LOG_STATUS_SKIPPED: 1,
    LOG_STATUS_COMPLETED: 2,
}

# Recurrence
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKDAYS = "weekdays"
RECURRENCE_WEEKENDS = "weekends"
RECURRENCE_CUSTOM = "custom"

# Weekday numbers (Sunday = 0)
SUNDAY = 0
SATURDAY = 6
WEEKDAY_NUMBERS = frozenset(range(1, 6))
WEEKEND_NUMBERS = frozenset({SUNDAY, SATURDAY})
ALL_DAY_NUMBERS = frozenset(range(7))

# Life domains
DOMAIN_HEALTH = "health"
DOMAIN_CAREER = "career"
DOMAIN_LEARNING = "learning"
DOMAIN_STARTUPS = "startups"
DOMAIN_SOCIAL = "social"
DOMAINS = (DOMAIN_HEALTH, DOMAIN_CAREER, DOMAIN_LEARNING, DOMAIN_STARTUPS, DOMAIN_SOCIAL)

TIME_OF_DAY_BUCKETS = ("none", "morning", "afternoon", "evening", "night", "day")

DEFAULT_BASE_POINTS = 1

# Streak rules (defaults for the Settings row)
MIN_ROUTINE_TASKS = 5
REST_DAY_MIN_WORKOUT_DAYS = 1
REST_DAY_LOOKBACK_DAYS = 10
STREAK_WALK_LIMIT = 3650

# (days in a row, bonus points, label)
STREAK_MILESTONES = (
    (1, 5, "First Day"),
    (3, 15, "3 Day Streak"),
    (5, 25, "5 Day Streak"),
    (7, 50, "1 Week Streak"),
    (10, 75, "10 Day Streak"),
    (15, 100, "15 Day Streak"),
    (20, 150, "20 Day Streak"),
    (30, 250, "1 Month Streak"),
    (50, 400, "50 Day Streak"),
    (75, 600, "75 Day Streak"),
    (100, 1000, "100 Day Streak"),
    (150, 1500, "150 Day Streak"),
    (200, 2000, "200 Day Streak"),
    (250, 2500, "250 Day Streak"),
    (300, 3000, "300 Day Streak"),
    (365, 5000, "1 Year Streak"),
)

# Completed-elsewhere items synthesized from activity logs
EXERCISE_TASK_POINTS = 25
BOOK_TASK_POINTS = 20
LEARNING_TASK_POINTS = 15
MIN_BOOK_READING_MINUTES = 5
MIN_LEARNING_MINUTES = 1
BOOK_TITLE_MAX_LENGTH = 20

# Notifications
NOTIFICATION_SLOT_MINUTES = 30
NOTIFICATION_CHANNEL_EMAIL = "email"
NOTIFICATION_CHANNEL_PUSH = "push"
