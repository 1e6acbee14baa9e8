#!/usr/bin/env python3
"""
Start the Celery worker that applies feedback to user weights
"""

import sys
from dayplan.celery_app import celery_app

if __name__ == "__main__":
    print("Starting dayplan learning worker...")
    print("Consumes the 'learning' queue one task at a time")
    print("Press Ctrl+C to stop")

    try:
        # Single consumer keeps per-user weight updates serialized
        celery_app.start(['worker', '-Q', 'learning', '--concurrency=1', '--loglevel=info'])
    except KeyboardInterrupt:
        print("\nStopping learning worker...")
        sys.exit(0)
