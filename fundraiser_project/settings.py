# fundraiser_project/settings.py

from pathlib import Path
import environ
import os

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Define ALL environment variables with their types and defaults here.
env = environ.Env(
    # set casting, default value
    DEBUG=(bool, True),
    SECRET_KEY=(str, 'django-insecure-a-default-secret-key-for-dev'),
    ALLOWED_HOSTS=(list, ['localhost', '127.0.0.1', 'testserver']),

    # DB
    DATABASE_URL=(str, 'sqlite:///' + str(BASE_DIR / 'db.sqlite3')),

    # Campaign REST API
    CAMPAIGN_API_URL=(str, 'http://localhost:5000/api'),
    CAMPAIGN_API_TOKEN=(str, ''),
    CAMPAIGN_API_TIMEOUT=(int, 30),

    # Draft autosave
    DRAFT_STORAGE_CAPACITY=(int, 5 * 1024 * 1024),
    DRAFT_SAVE_DELAY=(float, 1.0),
    CAMPAIGN_REDIRECT_DELAY=(float, 1.5),
    CAMPAIGN_REDIRECT_URL=(str, '/donate'),

    LOG_LEVEL=(str, 'INFO'),
)
environ.Env.read_env(os.path.join(BASE_DIR, '.env'))


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env('SECRET_KEY')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env('DEBUG')

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS')

# Application definition
INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'campaigns',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'fundraiser_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'fundraiser_project.wsgi.application'

# Database
DATABASES = {
    'default': env.db('DATABASE_URL'),
}

# Drafts live in the visitor's session, so keep sessions in the cache
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'fundraiser-drafts',
    }
}
SESSION_ENGINE = 'django.contrib.sessions.backends.cache'
MESSAGE_STORAGE = 'django.contrib.messages.storage.session.SessionStorage'

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = '/static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Uploaded documents can be large scans
DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024
FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024

# Campaign API Configuration
CAMPAIGN_API_URL = env('CAMPAIGN_API_URL')
CAMPAIGN_API_TOKEN = env('CAMPAIGN_API_TOKEN')
CAMPAIGN_API_TIMEOUT = env('CAMPAIGN_API_TIMEOUT')

# Draft autosave configuration
DRAFT_STORAGE_CAPACITY = env('DRAFT_STORAGE_CAPACITY')  # Most browsers allowed 5MB
DRAFT_SAVE_DELAY = env('DRAFT_SAVE_DELAY')
CAMPAIGN_REDIRECT_DELAY = env('CAMPAIGN_REDIRECT_DELAY')
CAMPAIGN_REDIRECT_URL = env('CAMPAIGN_REDIRECT_URL')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '[{levelname}] {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'campaigns': {
            'handlers': ['console'],
            'level': env('LOG_LEVEL'),
        },
    },
}
