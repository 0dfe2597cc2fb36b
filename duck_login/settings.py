import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Remote Duck API (the server side of the OTP flow)
    DUCK_API_BASE_URL: str = os.getenv("DUCK_API_BASE_URL", "https://quack.duckduckgo.com").rstrip("/")
    OTP_REQUEST_PATH: str = os.getenv("OTP_REQUEST_PATH", "/api/auth/loginlink")
    LOGIN_PATH: str = os.getenv("LOGIN_PATH", "/api/auth/login")
    ALIAS_PATH: str = os.getenv("ALIAS_PATH", "/api/email/addresses")
    # Upper bound per remote call; an expired call surfaces as a transport error
    REQUEST_TIMEOUT_SEC: float = float(os.getenv("REQUEST_TIMEOUT_SEC", "15.0"))

    # Identifier rules
    ADDRESS_DOMAIN: str = os.getenv("ADDRESS_DOMAIN", "duck.com")
    IDENTIFIER_PATTERN: str = os.getenv("IDENTIFIER_PATTERN", r"^[a-zA-Z0-9]+$")

    # Where a successful login lands; {index} is the account store index
    LOGIN_DESTINATION: str = os.getenv("LOGIN_DESTINATION", "/email/?id={index}")
    SIGNUP_URL: str = os.getenv("SIGNUP_URL", "https://duckduckgo.com/email/start")

    # Account store
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    ACCOUNTS_KEY: str = os.getenv("ACCOUNTS_KEY", "accounts")

    # HTTP surface
    API_KEY: str = os.getenv("API_KEY", "")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    # In-process login flows kept at once (oldest evicted first)
    FLOW_REGISTRY_MAX: int = int(os.getenv("FLOW_REGISTRY_MAX", "256"))

    # Logging
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"

settings = Settings()
