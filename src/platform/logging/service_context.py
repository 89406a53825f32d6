"""
Service context extraction for distributed logging.

Provides service identification across cloud and local environments
for better log traceability when API and task worker run as separate processes.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'reservation-engine')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostname when running in a pod/task, PID for local development
    instance_id = os.getenv('HOSTNAME', '')
    if instance_id:
        instance_id = instance_id[-8:]
    else:
        instance_id = str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance_id}'
