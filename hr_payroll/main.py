from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from hr_payroll.core.config import settings
from hr_payroll.core.database import engine, Base
from hr_payroll.core.logging_config import init_logging
from hr_payroll.core.redis_service import delivery_lock_service
from hr_payroll.core.error_handlers import register_error_handlers
from hr_payroll.core.middleware import add_middleware
from hr_payroll.employees.routes import router as employees_router
from hr_payroll.attendance.routes import router as attendance_router
from hr_payroll.adjustments.routes import router as adjustments_router
from hr_payroll.payrolls.routes import router as payrolls_router

API_PREFIX = "/api/v1"

init_logging(settings.log_level, settings.log_file or None)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Payroll computation and salary delivery for an HR back office",
    version="1.0.0",
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)
add_middleware(app)

for router in (employees_router, attendance_router, adjustments_router, payrolls_router):
    app.include_router(router, prefix=API_PREFIX)


def _lock_mode() -> str:
    return "redis" if delivery_lock_service.is_available() else "local"


@app.on_event("startup")
async def startup_event():
    """Create missing tables and report how deliveries are serialised."""
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.app_name} started; delivery locks are {_lock_mode()}")


@app.get("/")
async def root():
    return {
        "message": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "employees": f"{API_PREFIX}/employees",
            "attendance": f"{API_PREFIX}/attendance",
            "adjustments": f"{API_PREFIX}/adjustments",
            "payroll_sheet": f"{API_PREFIX}/payrolls/sheet",
            "deliver_salary": f"{API_PREFIX}/payrolls/deliver"
        }
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "delivery_locks": _lock_mode()}
