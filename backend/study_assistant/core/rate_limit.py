from slowapi import Limiter
from slowapi.util import get_remote_address

# Rate limiter setup
limiter = Limiter(key_func=get_remote_address)

# Each chat turn is one paid provider call
CHAT_RATE_LIMIT = "30/minute"
