# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

import os

# One worker: the synchronizer's single-flight guard is per process
workers = 1
worker_class = 'gthread'
threads = 4
timeout = 120
keepalive = 2

bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

# Logging
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
accesslog = '-'
errorlog = '-'

# Don't preload - the scheduler thread must start inside the worker
preload_app = False

# Process naming
proc_name = 'call-to-the-faithful'

max_requests = 0
max_requests_jitter = 0
