#!/usr/bin/env python3
"""
Simple script to run the HR Payroll Service
"""

import uvicorn
from hr_payroll.core.config import settings

if __name__ == "__main__":
    print("Starting HR Payroll Service...")
    print(f"App: {settings.app_name}")
    print(f"Host: {settings.host}")
    print(f"Port: {settings.port}")
    print(f"Debug: {settings.debug}")
    print(f"Database: {settings.database_url.split('@')[-1]}")
    print(f"API Documentation: http://localhost:{settings.port}/docs")
    print("-" * 50)

    uvicorn.run(
        "hr_payroll.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
