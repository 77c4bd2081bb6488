import os


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'mysecretkey')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///catalog.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    PORT = int(os.getenv('PORT', 8000))
    TOKEN_EXPIRE_HOURS = float(os.getenv('TOKEN_EXPIRE_HOURS', 2))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    # startup retry loop for a database that is not up yet
    DB_CONNECT_ATTEMPTS = int(os.getenv('DB_CONNECT_ATTEMPTS', 10))
    DB_CONNECT_DELAY_SECONDS = float(os.getenv('DB_CONNECT_DELAY_SECONDS', 2))

    API_TITLE = 'Catalog API'
    API_DESCRIPTION = 'Users and their products'
    API_VERSION = '1.0.0'


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    DB_CONNECT_ATTEMPTS = 1
    DB_CONNECT_DELAY_SECONDS = 0
