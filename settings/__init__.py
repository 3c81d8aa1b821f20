# settings/__init__.py
import os

# pytest points DJANGO_SETTINGS_MODULE at settings.test without setting DJANGO_ENV
_default_env = "test" if os.getenv("DJANGO_SETTINGS_MODULE") == "settings.test" else "development"
DJANGO_ENV = os.getenv("DJANGO_ENV", _default_env).lower()

if DJANGO_ENV == "production":
    print("⚙️ Using PRODUCTION settings")
    from .production import *
elif DJANGO_ENV == "test":
    from .test import *
else:
    print("🛠️ Using DEVELOPMENT settings")
    from .development import *
