import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-this'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f'sqlite:///{BASE_DIR}/data/ithub.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_AS_ASCII = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME') or 'admin'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'admin123'
    PAGE_SIZE = int(os.environ.get('PAGE_SIZE') or 20)
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT') or 50)
    REPORT_LIMIT = int(os.environ.get('REPORT_LIMIT') or 100)

class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'DEBUG'
    BCRYPT_LOG_ROUNDS = 4
