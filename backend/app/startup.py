"""
Application startup validation and initialization.

This module performs critical startup checks and initialization
to ensure the application is properly configured before serving requests.
"""

import logging
import sys
from typing import List, Tuple
from core.config import settings
from core.database import engine, Base
from sqlalchemy import text
import sqlalchemy as sa

logger = logging.getLogger(__name__)

REQUIRED_TABLES = [
    "qr_codes",
    "qr_scans",
    "sales_agents",
    "referral_scans",
    "agent_commissions",
    "transactions",
    "commission_breakdowns",
]


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_database_connection(self) -> bool:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                result = conn.execute(text("SELECT 1"))
                result.fetchone()
            logger.info("Database connection successful")
            return True
        except Exception as e:
            self.errors.append(f"Database connection failed: {str(e)}")
            return False

    def check_environment_config(self) -> bool:
        """Validate environment configuration"""
        if settings.is_production and settings.debug:
            self.errors.append("DEBUG must be disabled in production")
            return False

        if settings.min_agent_commission > 0 and settings.agent_commission_rate == 0:
            self.warnings.append(
                "AGENT_COMMISSION_RATE is 0; every agent will earn the minimum commission"
            )
        if not settings.notifications_enabled:
            self.warnings.append("Notifications are disabled")
        return True

    def check_required_tables(self) -> bool:
        """Check if required database tables exist, creating them outside production"""
        try:
            existing_tables = sa.inspect(engine).get_table_names()
            missing_tables = [t for t in REQUIRED_TABLES if t not in existing_tables]

            if not missing_tables:
                return True

            if settings.is_production:
                self.errors.append(
                    f"Missing database tables: {', '.join(missing_tables)}. "
                    "Run migrations with: alembic upgrade head"
                )
                return False

            Base.metadata.create_all(bind=engine)
            self.warnings.append(
                f"Created missing tables for {settings.environment}: {', '.join(missing_tables)}"
            )
            return True
        except Exception as e:
            self.warnings.append(f"Could not check database tables: {str(e)}")
            return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Environment Configuration", self.check_environment_config),
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.check_required_tables),
        ]

        all_passed = True

        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            try:
                if not check_func():
                    all_passed = False
            except Exception as e:
                self.errors.append(f"{check_name} check failed with error: {str(e)}")
                all_passed = False

        return all_passed, self.errors, self.warnings


def run_startup_checks():
    """Run all startup validation checks"""
    logger.info("=" * 60)
    logger.info("Starting QR Settlement Backend")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    if warnings:
        logger.warning("Startup Warnings:")
        for warning in warnings:
            logger.warning(f"  {warning}")

    if errors:
        logger.error("Startup Errors:")
        for error in errors:
            logger.error(f"  {error}")

    # Determine if we should continue
    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning(f"Starting in {settings.environment} mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
