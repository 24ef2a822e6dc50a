#!/usr/bin/env python3
"""
Example: promote workflows from a staging n8n instance to production

Checks internal IDs on the source first, then runs the transfer.

Usage:
    # Dry run (simulation)
    python transfer_workflows.py --dry-run

    # Full transfer
    python transfer_workflows.py

    # With custom config
    python transfer_workflows.py --config my_config.json
"""

import argparse
import logging
import sys
from pathlib import Path

from workflow_transfer.cli import build_manager, print_transfer_summary
from workflow_transfer.config import load_config
from workflow_transfer.errors import ValidationError
from workflow_transfer.logging_utils import configure_logging
from workflow_transfer.services.run_log import RunLog
from workflow_transfer.services.validation_service import ValidationService

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Promote staging workflows to production")
    parser.add_argument("--config", default=str(Path(__file__).parent / "config.json"))
    parser.add_argument("--dry-run", action="store_true", help="Run without writing to the target")
    args = parser.parse_args()

    configure_logging()
    config = load_config(args.config)
    manager = build_manager(config)

    # Refuse to promote anything while internal IDs collide on staging
    service = ValidationService(config.validation, run_log=RunLog(config.validation.log_path))
    try:
        service.validate(manager.source.list_records())
    except ValidationError as e:
        print("\n".join(e.messages))
        return 1

    options = config.transfer.model_copy(update={"dry_run": args.dry_run})
    result = manager.transfer(options)
    print_transfer_summary(result)
    return 0 if result.status.value == "completed" else 1


if __name__ == "__main__":
    sys.exit(main())
