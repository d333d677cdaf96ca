from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # Database Configuration
    database_url: str = "sqlite:///./hr_payroll.db"

    # Application Configuration
    app_name: str = "HR Payroll Service"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    max_request_size: int = 5 * 1024 * 1024  # 5MB

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/hr_payroll.log"

    # Payroll Defaults
    default_workdays: List[int] = [0, 1, 2, 3, 4]  # Sunday..Thursday
    default_agreed_daily_hours: float = 8.0
    payroll_deduct_absences: bool = False

    # Delivery Locking
    enable_redis_locks: bool = False
    redis_url: str = "redis://localhost:6379/0"
    redis_password: Optional[str] = None
    redis_socket_timeout: int = 5
    redis_socket_connect_timeout: int = 5
    delivery_lock_timeout: int = 30  # seconds a held lock survives a crashed worker
    delivery_lock_wait: float = 5.0  # seconds a caller waits for a busy key

    class Config:
        env_file = ".env"
        case_sensitive = False


# Create settings instance
settings = Settings()
