# assignment_eval/workers/worker_main.py
import argparse
import logging

from rq import Queue, SimpleWorker

from assignment_eval.core.config import settings
from assignment_eval.core.logging import configure_logging
from assignment_eval.workers.queue import get_redis_connection

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the AI evaluation worker")
    parser.add_argument(
        "--burst",
        action="store_true",
        help="exit once the queue is empty",
    )
    args = parser.parse_args(argv)

    configure_logging()
    redis_conn = get_redis_connection()
    queue = Queue(settings.AI_EVALUATION_QUEUE, connection=redis_conn)

    # jobs run in this process, no fork per job
    worker = SimpleWorker([queue], connection=redis_conn)
    logger.info(f"Listening on queue '{queue.name}' (burst={args.burst})")
    worker.work(burst=args.burst)


if __name__ == "__main__":
    main()
