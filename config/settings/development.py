from .base import *

DEBUG = True

ALLOWED_HOSTS = ['*']

# ======================================================================
# DEVELOPMENT-SPECIFIC SETTINGS
# ======================================================================

# Throttling gets in the way of manual testing against a local server.
REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []
# If you still want some throttling but very lenient, you can uncomment and adjust these rates:
# REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'] = {
#     'anon': '10000/minute',
#     'user': '50000/minute',
# }

LOGGING['loggers']['apps']['level'] = 'DEBUG'
