"""
config/settings/base.py - Shared settings for every environment
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-change-me')

DEBUG = False

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')
    if host.strip()
]


# ======================================================================
# APPLICATIONS
# ======================================================================

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third party
    'rest_framework',
    'rest_framework.authtoken',

    # Local apps
    'apps.common',
    'apps.users',
    'apps.economy',
    'apps.matching',
    'apps.blind_dating',
    'apps.messaging',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

AUTH_USER_MODEL = 'users.User'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ======================================================================
# DATABASE
# ======================================================================

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}


# ======================================================================
# CACHE
# ======================================================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'dating-backend',
    }
}


AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# ======================================================================
# REST FRAMEWORK
# ======================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'apps.common.pagination.StandardResultsSetPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.AnonRateThrottle',
        'rest_framework.throttling.UserRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': '100/hour',
        'user': '2000/hour',
    },
    'EXCEPTION_HANDLER': 'apps.common.exceptions.dating_exception_handler',
}


# ======================================================================
# LOGGING
# ======================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'apps': {
            'handlers': ['console'],
            'level': os.environ.get('APPS_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}


# ======================================================================
# PUSH NOTIFICATIONS
# ======================================================================

EXPO_PUSH_URL = os.environ.get('EXPO_PUSH_URL', 'https://exp.host/--/api/v2/push/send')
PUSH_NOTIFICATIONS_ENABLED = os.environ.get('PUSH_NOTIFICATIONS_ENABLED', 'true').lower() == 'true'
PUSH_TIMEOUT_SECONDS = 5


# ======================================================================
# ECONOMY (coins, likes, chat slots)
# ======================================================================

STARTING_COINS = 150
DEFAULT_CHAT_SLOTS = 3
MAX_FREE_LIKES = 10
LIKE_REGEN_HOURS = 24

BUY_LIKES_COST = 100
BUY_LIKES_AMOUNT = 5
BUY_CHAT_SLOT_COST = 150

REVEAL_COST = 70
START_CHAT_COST = 100
DIRECT_CHAT_COST = 150


# ======================================================================
# BLIND DATING
# ======================================================================

BLIND_DATE_SESSION_MINUTES = 5
BLIND_DATE_REVEAL_COST = 70
BLIND_DATE_CHAT_COST = 200
BLIND_DATE_CHAT_AFTER_REVEAL_COST = 100
BLIND_DATE_ABANDONED_MINUTES = 2
BLIND_DATE_QUEUE_STALE_MINUTES = 10
BLIND_DATE_CLEANUP_INTERVAL_SECONDS = 60
BLIND_MESSAGE_MAX_LENGTH = 1000


# ======================================================================
# CHAT
# ======================================================================

CHAT_MESSAGE_MAX_LENGTH = 1000
CHAT_PREVIEW_LENGTH = 50


# ======================================================================
# REWARDS
# ======================================================================

DAILY_REWARD = 20
PROFILE_COMPLETE_REWARD = 50
FIRST_CHAT_REWARD = 30
REFERRAL_REWARD = 100


# ======================================================================
# RECOMMENDATIONS
# ======================================================================

RECOMMENDATION_WEIGHTS = {
    'interests': 4,
    'intentions': 3,
    'gender_preference': 2,
}
RECOMMENDATION_CACHE_SECONDS = 300
RECOMMENDATION_CANDIDATE_POOL = 200
