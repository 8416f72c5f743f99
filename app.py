#!/usr/bin/env python3
"""
Run script for the invoicing service
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from invoicing import create_app  # noqa: E402
from invoicing.build import build_database  # noqa: E402
from invoicing.logger import get_logger  # noqa: E402

# Run 'python generate_env.py' to create a .env file with a secret key and demo API key.

app = create_app()
logger = get_logger("invoicing.run")


def parse_arguments():
    parser = argparse.ArgumentParser(description='Invoicing and sales order service')
    parser.add_argument('--build-only', action='store_true',
                        help='Create the database tables (and demo data unless disabled), then exit')
    parser.add_argument('--no-demo-data', action='store_false', dest='demo_data',
                        help='Do not insert the demo tenant, customers and inventory')
    return parser.parse_args()


def _flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


if __name__ == '__main__':
    args = parse_arguments()

    logger.debug("Starting invoicing service...")
    build_database(app, seed_demo_data=args.demo_data)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    debug_mode = _flag('FLASK_DEBUG')
    use_reloader = _flag('USE_RELOADER')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
