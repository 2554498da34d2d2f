"""Global constants for leavedesk.

Centralizes the timing and ceiling values used by the retry engine,
the notification sink, and the logging layer.
"""

# =============================================================================
# Retry / Backoff
# =============================================================================

DEFAULT_BASE_DELAY_MS = 1000
"""First backoff delay before a retry (1 second)."""

DEFAULT_MAX_DELAY_MS = 30_000
"""Upper bound for any backoff delay (30 seconds)."""

QUERY_MAX_RETRIES = 3
"""Retry ceiling for read calls (queries)."""

MUTATION_MAX_RETRIES = 1
"""Retry ceiling for write calls (mutations): at most one retry."""

# =============================================================================
# Notifications
# =============================================================================

TOAST_AUTO_CLOSE_MS = 8000
"""Auto-close for error toasts whose kind will not be retried."""

RETRYABLE_TOAST_AUTO_CLOSE_MS = 10_000
"""Auto-close for error toasts that offer a retry action."""

SUCCESS_TOAST_AUTO_CLOSE_MS = 5000
INFO_TOAST_AUTO_CLOSE_MS = 6000

TOAST_DEFAULT_POSITION = "top-right"

# =============================================================================
# Navigation
# =============================================================================

DEFAULT_LOGIN_PATH = "/login"
"""Where an authentication failure sends the user after clearing the session."""

# =============================================================================
# Logging
# =============================================================================

LOG_MAX_FILE_SIZE_MB = 50
LOG_BACKUP_COUNT = 5
