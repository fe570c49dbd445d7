"""
Service context extraction for client-side logging.

Tags every log line with the client name, deploy target and process so that logs from
several concurrently running clients can be told apart.
"""

import os
import socket
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ticketing-client')
    deploy_env = os.getenv('DEPLOY_TARGET') or os.getenv('DFX_NETWORK') or 'local'

    try:
        host = socket.gethostname().split('.')[0][:12]
    except OSError:
        host = 'unknown'

    return f'{service_name}@{deploy_env}:{host}:{os.getpid()}'
