# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Environment-based configuration for Call to the Faithful reminders
"""
import os

# Environment Detection
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'production')
DEBUG = ENVIRONMENT == 'development'

# Calendar Settings
TIMEZONE = os.environ.get('TIMEZONE', 'America/Chicago')
DEFAULT_OWNER_NAME = os.environ.get('DEFAULT_OWNER_NAME', 'St. Edward')

# Schedule Storage
SCHEDULE_STORE_PATH = os.environ.get('SCHEDULE_STORE_PATH', '/data/parish_schedule.json')

# Reminder Gateway
REMINDER_NAMESPACE = os.environ.get('REMINDER_NAMESPACE', 'call-to-the-faithful.')
REMINDER_GATEWAY_URL = os.environ.get('REMINDER_GATEWAY_URL', '')
REMINDER_GATEWAY_TOKEN = os.environ.get('REMINDER_GATEWAY_TOKEN', '')
REQUEST_TIMEOUT = int(os.environ.get('REQUEST_TIMEOUT', 30))

# Reminder Settings
ANGELUS_ENABLED = os.environ.get('ANGELUS_ENABLED', 'True').lower() == 'true'
DRY_RUN_MODE = os.environ.get('DRY_RUN_MODE', 'False').lower() == 'true'
IDLE_REFRESH_MINUTES = int(os.environ.get('IDLE_REFRESH_MINUTES', 30))
UPCOMING_LIMIT = int(os.environ.get('UPCOMING_LIMIT', 8))

# Resync Interval (in minutes)
RESYNC_INTERVAL_MIN = int(os.environ.get('RESYNC_INTERVAL_MIN', 60))
SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'True').lower() == 'true'

# Circuit Breaker Settings
CIRCUIT_BREAKER_FAIL_MAX = int(os.environ.get('CIRCUIT_BREAKER_FAIL_MAX', 5))
CIRCUIT_BREAKER_RESET_TIMEOUT = int(os.environ.get('CIRCUIT_BREAKER_RESET_TIMEOUT', 60))

# Retry Settings
MAX_RETRIES = int(os.environ.get('MAX_RETRIES', 3))
BASE_DELAY = float(os.environ.get('BASE_DELAY', 1.0))

# Application Settings
PORT = int(os.environ.get('PORT', 5000))

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
STRUCTURED_LOGGING = os.environ.get('STRUCTURED_LOGGING', 'True').lower() == 'true'

# Development Settings
if DEBUG:
    LOG_LEVEL = 'DEBUG'
    DRY_RUN_MODE = True
    RESYNC_INTERVAL_MIN = 1  # Faster resyncs for development
