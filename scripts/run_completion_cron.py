#!/usr/bin/env python3
"""
Cron script for completing bookings whose time has passed.
For deployments that run with ENABLE_SCHEDULER=false, e.g. hourly:
0 * * * * /path/to/venv/bin/python /path/to/run_completion_cron.py
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.config import Config
from quickcourt.integrations import build_payment_gateway
from quickcourt.services.booking_service import BookingService
from quickcourt.utils.logger import get_logger
from quickcourt.database import init_db
from datetime import datetime

logger = get_logger('quickcourt.completion_cron')


def main():
    """Main cron job function"""
    logger.info(f"Starting booking completion job at {datetime.utcnow()}")

    try:
        init_db()

        booking_service = BookingService(build_payment_gateway(Config))
        completed = booking_service.complete_past_bookings()

        logger.info(f"Booking completion job finished: {completed} bookings completed")

    except Exception as e:
        logger.error(f"Error in booking completion job: {str(e)}")
        raise


if __name__ == "__main__":
    main()
