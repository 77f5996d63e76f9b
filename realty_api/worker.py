"""
Dramatiq worker entry point.

    dramatiq realty_api.worker --queues email-queue maintenance

Importing this module declares every actor on the Redis broker.
"""

import logging

from realty_api.services.broker import get_broker
from realty_api.services.email_queue import get_email_queue
from realty_api.services.maintenance import create_maintenance_tasks

logger = logging.getLogger(__name__)

broker = get_broker()
email_queue = get_email_queue()
maintenance_tasks = create_maintenance_tasks(broker)

logger.info(f"Worker actors declared: {sorted(broker.get_declared_actors())}")
