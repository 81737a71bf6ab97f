"""
Django settings for netbill project.
"""

import os
from pathlib import Path
import dj_database_url
from decouple import config, Csv

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('SECRET_KEY', default='django-insecure-dev-key-change-in-production')

# DEBUG should be False in production!
DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config(
    'ALLOWED_HOSTS',
    default='localhost,127.0.0.1,testserver,.example.com',
    cast=Csv(),
)

# Application definition
INSTALLED_APPS = [
    'jazzmin',
    'django_countries',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'accounts',
    'router_manager',
    'billing',
    'support',
    'corsheaders',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'accounts.middleware.TenantMiddleware',
]

ROOT_URLCONF = 'netbill.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'netbill.wsgi.application'

# Database
# Use PostgreSQL when DATABASE_URL is set, SQLite locally
if 'DATABASE_URL' in os.environ:
    DATABASES = {
        'default': dj_database_url.config(
            default=config('DATABASE_URL'),
            conn_max_age=600,
            ssl_require=config('DATABASE_SSL_REQUIRE', default=True, cast=bool)
        )
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = config('TIME_ZONE', default='Asia/Dhaka')
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = 'static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')

# Uploaded files (ticket attachments)
MEDIA_URL = '/media/'
MEDIA_ROOT = os.path.join(BASE_DIR, 'media')

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedStaticFilesStorage'},
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Custom user model
AUTH_USER_MODEL = 'accounts.User'

# Security settings for production
if not DEBUG:
    SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = 'DENY'
    SECURE_HSTS_SECONDS = 31536000  # 1 year
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True

# Logging configuration
LOG_LEVEL = config('LOG_LEVEL', default='INFO')

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
        'level': 'INFO',
    },
    'loggers': {
        'accounts': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'billing': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'router_manager': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'support': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}

# Fernet key for router credentials; derived from SECRET_KEY when empty
ENCRYPTION_KEY = config('ENCRYPTION_KEY', default='')

# CORS settings
CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='', cast=Csv())

# Cache settings
# Scheduler run-locks live in the 'locks' cache, which must be shared by every
# process (web, Celery workers, cron). Without Redis it is a database table:
# run `python manage.py createcachetable` after migrating.
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'netbill',
        'TIMEOUT': 300,  # 5 minutes
    },
    'locks': {
        'BACKEND': 'django.core.cache.backends.db.DatabaseCache',
        'LOCATION': 'netbill_job_locks',
    },
}
if config('REDIS_URL', default=''):
    CACHES['default'] = {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': config('REDIS_URL'),
    }
    CACHES['locks'] = dict(CACHES['default'])

# Tenancy
TENANCY_SUPER_ADMIN_DOMAIN = config('TENANCY_SUPER_ADMIN_DOMAIN', default='admin.example.com')
TENANCY_BASE_DOMAIN = config('TENANCY_BASE_DOMAIN', default='example.com')
TENANCY_RESERVED_SUBDOMAINS = ['www', 'admin', 'api', 'app', 'mail']
TENANCY_DEFAULT_BILLING_DAY = config('TENANCY_DEFAULT_BILLING_DAY', default=10, cast=int)
TENANCY_DEFAULT_VAT_PERCENT = config('TENANCY_DEFAULT_VAT_PERCENT', default='0.00')
TENANCY_DEFAULT_CURRENCY = config('TENANCY_DEFAULT_CURRENCY', default='BDT')
TENANCY_DEFAULT_TIMEZONE = config('TENANCY_DEFAULT_TIMEZONE', default='Asia/Dhaka')

# Billing
BILLING_INVOICE_GRACE_DAYS = config('BILLING_INVOICE_GRACE_DAYS', default=15, cast=int)
BULK_CHUNK_SIZE = config('BULK_CHUNK_SIZE', default=100, cast=int)
SCHEDULER_LOCK_TIMEOUT = config('SCHEDULER_LOCK_TIMEOUT', default=3600, cast=int)

# Support
SUPPORT_MAX_ATTACHMENT_SIZE = config('SUPPORT_MAX_ATTACHMENT_SIZE', default=10 * 1024 * 1024, cast=int)

# Mobile money gateways
BKASH_BASE_URL = config('BKASH_BASE_URL', default='https://api.bkash.example/isp')
BKASH_API_KEY = config('BKASH_API_KEY', default='')
NAGAD_BASE_URL = config('NAGAD_BASE_URL', default='https://api.nagad.example/isp')
NAGAD_API_KEY = config('NAGAD_API_KEY', default='')
PAYMENT_GATEWAY_TIMEOUT = config('PAYMENT_GATEWAY_TIMEOUT', default=30, cast=int)

# SMS
SMS_HTTP_TIMEOUT = config('SMS_HTTP_TIMEOUT', default=15, cast=int)
SMS_MAX_RETRIES = config('SMS_MAX_RETRIES', default=3, cast=int)

# RouterOS
ROUTEROS_TIMEOUT = config('ROUTEROS_TIMEOUT', default=10, cast=int)

# Celery
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default='redis://localhost:6379/0')
CELERY_TIMEZONE = TIME_ZONE

# Jazzmin Admin settings
JAZZMIN_SETTINGS = {
    "site_title": "NetBill Admin",
    "site_header": "NetBill",
    "site_brand": "NetBill",
    "welcome_sign": "Welcome to NetBill Admin",
}

SESSION_COOKIE_AGE = 1209600  # 2 weeks
