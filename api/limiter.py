"""
api/limiter.py -- The one slowapi Limiter for the JobPortal API.

api/main.py mounts it (app.state.limiter + SlowAPIMiddleware) and
api/routes/v1/user.py decorates /login and /google with it. Both must use
this instance: counters live in the limiter's storage, so a second Limiter
would count separately and never trip.

Clients are keyed by remote address. Counter storage comes from
Settings.rate_limit_storage_uri.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)
