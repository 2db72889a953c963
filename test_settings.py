"""
These settings are here to use during tests, because django requires them.

In a real-world use case, the apps in this project are installed into other
Django applications, so these settings will not be used.
"""

from os.path import abspath, dirname, join


def root(*args):
    """
    Get the absolute path of the given path relative to the project root.
    """
    return join(abspath(dirname(__file__)), *args)


DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": "default.db",
        "USER": "",
        "PASSWORD": "",
        "HOST": "",
        "PORT": "",
    }
}

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.messages",
    "django.contrib.sessions",
    "django.contrib.staticfiles",
    # Admin
    'django.contrib.admin',
    # django-rules based authorization
    'rules.apps.AutodiscoverRulesConfig',
    # REST API
    "rest_framework",
    # Our own apps
    "managed_content_field.apps.entities.apps.EntitiesConfig",
]

AUTHENTICATION_BACKENDS = [
    'rules.permissions.ObjectPermissionBackend',
    'django.contrib.auth.backends.ModelBackend',
]

MIDDLEWARE = [
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

SECRET_KEY = "insecure-secret-key"

USE_TZ = True

STATIC_URL = 'static/'

######################## MANAGED CONTENT SETTINGS ########################

MANAGED_CONTENT = {
    "STRICT_ACTIONS": False,
    "DEFAULT_LANGCODE": "en",
    "WIDGET": {},
    "WORKFLOWS": {
        "editorial": {
            "label": "Editorial",
            "bundles": ["article"],
            "initial_state": "draft",
            "states": {
                "draft": {"label": "Draft", "published": False, "default_revision": False},
                "published": {"label": "Published", "published": True, "default_revision": True},
                "archived": {"label": "Archived", "published": False, "default_revision": True},
            },
        },
    },
}
