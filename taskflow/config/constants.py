"""
Application constants
"""

from pathlib import Path

# TaskFlow API
TASKFLOW_API_BASE_URL = "http://localhost:3001/api"
HTTP_TIMEOUT = 30  # seconds

# Retry configuration (1 attempt = no automatic retry)
MAX_RETRIES = 1
RETRY_DELAY = 1  # seconds

# Tasks
MAX_TAGS_PER_TASK = 3

# Priority ranking used for sorting (higher first)
PRIORITY_RANK = {
    "high": 3,
    "medium": 2,
    "low": 1,
}

# Deadline thresholds
DUE_SOON_WINDOW_SECONDS = 60 * 60  # 1 hour
DUE_TOMORROW_WINDOW_SECONDS = 24 * 60 * 60  # 24 hours
DEADLINE_CHECK_INTERVAL_MS = 60_000

# Fallback toast
TOAST_DURATION_SECONDS = 5.0
TOAST_TRANSITION_SECONDS = 0.3
TOAST_HINT = "🔔 Enable notifications for better experience"

# Local durable store
LOCAL_STORE_PATH = ".local/taskflow/store.json"
TAGS_RECORD_NAME = "taskflow-tags"
PERMISSION_RECORD_NAME = "taskflow-notification-permission"

DEFAULT_TAGS = [
    {"id": "work", "name": "Work", "color": "#3b82f6"},
    {"id": "personal", "name": "Personal", "color": "#10b981"},
    {"id": "urgent", "name": "Urgent", "color": "#ef4444"},
    {"id": "shopping", "name": "Shopping", "color": "#f59e0b"},
    {"id": "health", "name": "Health", "color": "#8b5cf6"},
    {"id": "ideas", "name": "Ideas", "color": "#06b6d4"},
]

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_DIR = str(Path(__file__).parent.parent.parent / "logs")
LOG_FILE_NAME = "taskflow.log"
