"""Settings for production.

Secrets have no defaults: a missing value stops the process at startup.
"""

from decouple import Csv

from minidrive.settings.components import config

DEBUG = False

ALLOWED_HOSTS = config(
    'DJANGO_ALLOWED_HOSTS',
    cast=Csv(),
)

SECRET_KEY = config('DJANGO_SECRET_KEY')

MASTER_ENCRYPTION_KEY = config('MASTER_ENCRYPTION_KEY')

SECURE_CONTENT_TYPE_NOSNIFF = True
