import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookquest.db")
    SECRET_KEY = os.getenv("SECRET_KEY")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 1440))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
    PORT = int(os.getenv("PORT", 5005))

    # Google Books
    GOOGLE_BOOKS_API_KEY = os.getenv("GOOGLE_BOOKS_API_KEY")
    GOOGLE_BOOKS_TIMEOUT = float(os.getenv("GOOGLE_BOOKS_TIMEOUT", 25))
    GOOGLE_BOOKS_MAX_RETRIES = int(os.getenv("GOOGLE_BOOKS_MAX_RETRIES", 2))
    GOOGLE_BOOKS_RETRY_DELAY = float(os.getenv("GOOGLE_BOOKS_RETRY_DELAY", 1.0))
    GOOGLE_BOOKS_BATCHES = int(os.getenv("GOOGLE_BOOKS_BATCHES", 10))

    # Paths
    BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(BASE_DIR, "media"))
    MEDIA_URL = "/media"

    @property
    def is_development(self):
        return self.ENVIRONMENT == "development"

settings = Settings()
