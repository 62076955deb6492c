"""
Service context for log lines.

Identifies which process wrote a line when the booking API workers and the
hold sweep run side by side against the same stores.
"""

from functools import lru_cache
import os
import socket


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'hostel-booking')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostnames are unique per replica; fall back to PID locally
    if deploy_env == 'local_dev':
        instance = str(os.getpid())
    else:
        instance = socket.gethostname()[:12] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance}'
