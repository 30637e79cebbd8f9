from slowapi import Limiter
from slowapi.util import get_remote_address
from common.config.settings import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)


def analysis_rate_limit() -> str:
    return get_settings().analysis_rate_limit
