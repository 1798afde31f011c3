import os

class Config:
    def __init__(self):
        # Upstream REST API
        self.API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:5001/api")
        self.REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "15"))
        self.PRODUCT_FETCH_LIMIT = int(os.environ.get("PRODUCT_FETCH_LIMIT", "100"))
        self.PRODUCT_CACHE_TTL = int(os.environ.get("PRODUCT_CACHE_TTL", "300"))
        
        # Retry configuration
        self.MAX_RETRIES = int(os.environ.get("MAX_RETRIES", "2"))
        self.RETRY_BACKOFF = float(os.environ.get("RETRY_BACKOFF", "1.5"))
        
        # Client-side state persistence
        self.REDIS_URL = os.environ.get("REDIS_URL", "")
        self.STORAGE_TTL = int(os.environ.get("STORAGE_TTL", "0"))
        
        # Search
        self.SEARCH_DEBOUNCE_MS = int(os.environ.get("SEARCH_DEBOUNCE_MS", "300"))
        
        # Shopper sessions kept in memory
        self.MAX_SHOPPER_SESSIONS = int(os.environ.get("MAX_SHOPPER_SESSIONS", "1000"))
        
        # Error tracking
        self.SENTRY_DSN = os.environ.get("SENTRY_DSN", "")
        self.ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
        
        # Application settings
        self.DEBUG = os.environ.get("DEBUG", "false").lower() == "true"
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    
    @property
    def has_sentry(self) -> bool:
        return bool(self.SENTRY_DSN)
    
    @property
    def has_redis(self) -> bool:
        return bool(self.REDIS_URL)

# Create an instance
config = Config()
