#!/usr/bin/env python3
"""
Run script for the Bookshop Management System
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file before the app reads them
load_dotenv()

from bookshop import create_app
from bookshop.build import build_database
from bookshop.logger import get_logger

# Run 'python generate_env.py' to create a .env file with a SECRET_KEY.

logger = get_logger("bookshop.run")


def parse_arguments():
    parser = argparse.ArgumentParser(description='Bookshop Management System')
    parser.add_argument('--build-only', action='store_true',
                        help='Create tables (and seed data unless disabled), then exit without serving')
    parser.add_argument('--no-seed-data', action='store_false', dest='seed_data',
                        help='Do not insert the seed catalog')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()

    app = create_app()
    build_database(seed=args.seed_data, app=app)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("⚠️  DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode})")
    app.run(debug=debug_mode, host=host, port=port)
