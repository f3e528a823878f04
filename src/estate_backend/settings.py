import os
import threading

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./estate.db")
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
        # Role whose holders are treated as admins by the identity resolver
        self.ADMIN_ROLE_NAME = os.environ.get("ADMIN_ROLE_NAME", "admin")
        # Optional YAML file overriding per-resource ownership sources
        self.OWNERSHIP_CONFIG = os.environ.get("OWNERSHIP_CONFIG", None)
        self.SEED_ON_STARTUP = os.environ.get("SEED_ON_STARTUP", "true").lower() in ["true", "1", "yes", "on"]

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

settings = BackendSettings()
