import os
from dotenv import load_dotenv
load_dotenv()  # local .env overrides; real env wins in deployment

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///greengrocer.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # empty -> storefront calls its own /api blueprint in-process
    BACKEND_URL = os.getenv("BACKEND_URL", "")
    BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "5"))
    CART_SESSION_KEY = "cart"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

class DevConfig(BaseConfig):
    DEBUG = True

class TestConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BACKEND_URL = ""
    LOG_LEVEL = "DEBUG"
