"""
Scheduler for recurring maintenance.

Runs daily at 3:00 AM to expire old offers and on the 1st of each month to
reset comparison counters.
"""
import logging
from datetime import datetime
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from esperto.config import get_settings
from esperto.database import SessionLocal
from esperto.services.offer_cleanup import cleanup_old_offers, reset_monthly_usage

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = BackgroundScheduler()

# Store last cleanup results
last_cleanup = {
    "timestamp": None,
    "results": {}
}

# Store last usage reset results
last_usage_reset = {
    "timestamp": None,
    "results": {}
}


def run_offer_cleanup():
    """Job function to delete offers past the retention window."""
    global last_cleanup

    logger.info("Starting offer cleanup...")
    start_time = datetime.now()
    db = SessionLocal()

    try:
        results = cleanup_old_offers(
            db,
            retention_days=get_settings().offer_retention_days,
            now=start_time
        )
        last_cleanup = {
            "timestamp": start_time.isoformat(),
            "duration_seconds": (datetime.now() - start_time).total_seconds(),
            "results": results
        }
    except Exception as e:
        db.rollback()
        logger.error(f"Error in offer cleanup: {e}")
        last_cleanup = {
            "timestamp": start_time.isoformat(),
            "duration_seconds": (datetime.now() - start_time).total_seconds(),
            "results": {},
            "error": str(e)
        }
    finally:
        db.close()


def run_usage_reset():
    """Job function to reset monthly comparison counters."""
    global last_usage_reset

    logger.info("Starting monthly usage reset...")
    start_time = datetime.now()
    db = SessionLocal()

    try:
        updated = reset_monthly_usage(db, now=start_time)
        last_usage_reset = {
            "timestamp": start_time.isoformat(),
            "results": {"users_reset": updated}
        }
    except Exception as e:
        db.rollback()
        logger.error(f"Error in monthly usage reset: {e}")
        last_usage_reset = {
            "timestamp": start_time.isoformat(),
            "results": {},
            "error": str(e)
        }
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler."""
    if scheduler.running:
        logger.info("Scheduler already running")
        return

    # Daily cleanup at 3:00 AM
    scheduler.add_job(
        run_offer_cleanup,
        CronTrigger(hour=3, minute=0),
        id='daily_offer_cleanup',
        name='Daily Offer Cleanup',
        replace_existing=True
    )

    # Monthly counters reset just after midnight on the 1st
    scheduler.add_job(
        run_usage_reset,
        CronTrigger(day=1, hour=0, minute=5),
        id='monthly_usage_reset',
        name='Monthly Usage Reset',
        replace_existing=True
    )

    scheduler.start()
    logger.info("Scheduler started with jobs:")
    for job in scheduler.get_jobs():
        logger.info(f"  - {job.name}: {job.trigger}")


def stop_scheduler():
    """Stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")


def get_scheduler_status():
    """Get current scheduler status."""
    jobs = []
    if scheduler.running:
        for job in scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "trigger": str(job.trigger),
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None
            })

    return {
        "running": scheduler.running,
        "jobs": jobs,
        "last_cleanup": last_cleanup,
        "last_usage_reset": last_usage_reset
    }
