from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://taskflow:taskflow@db:5432/taskflow")
    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "60"))  # 1h
    JWT_REFRESH_EXPIRE_MIN = int(getenv("JWT_REFRESH_EXPIRE_MIN", "10080"))  # 7 days
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = getenv("LOG_FORMAT", "%(asctime)s %(levelname)-8s %(name)s - %(message)s")
    # seed the "User Guide" example tasks into a new user's default workspace
    SEED_EXAMPLE_TASKS = getenv("SEED_EXAMPLE_TASKS", "true").lower() in ("1", "true", "yes")

settings = Settings()
