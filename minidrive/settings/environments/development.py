"""Settings for local development and tests.

Every secret has a throwaway default here so the project runs
without a `config/.env` file. Never use these values in production.
"""

from minidrive.settings.components import config

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '[::1]']

SECRET_KEY = config(
    'DJANGO_SECRET_KEY',
    default='development-secret-key-do-not-use-in-production',
)

MASTER_ENCRYPTION_KEY = config(
    'MASTER_ENCRYPTION_KEY',
    default='development-master-key-0123456789abcdef',
)
