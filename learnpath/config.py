import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "default-secret")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///learnpath.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Auth
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 24)))

    # Frontend / CORS
    FRONTEND_URL = os.getenv("FRONTEND_URL")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Payment Gateway
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
    PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_CURRENCY = os.getenv("PAYSTACK_CURRENCY", "USD")
    PAYSTACK_TIMEOUT = float(os.getenv("PAYSTACK_TIMEOUT", 10))
