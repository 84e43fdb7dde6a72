#!/usr/bin/env python3
"""
Factory reset script.

Replaces the stored application state with the seed dataset and tells
running clients to reload.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from supply_admin.config import get_config_manager
from supply_admin.services import RepositoryError, create_data_sync_service
from supply_admin.utils import get_logger


def main() -> None:
    """Reset the stored state."""
    parser = argparse.ArgumentParser(description="Reset supply admin state to the seed dataset")
    parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    logger = get_logger("reset_state")
    config = get_config_manager()

    logger.info("=" * 60)
    logger.info("Supply Admin State Reset")
    logger.info("=" * 60)
    logger.info(f"Backend: {config.get('repository.backend')}")

    if not args.yes:
        answer = input("This replaces all stored data with the seed dataset. Continue? [y/N] ")
        if answer.strip().lower() != "y":
            logger.info("Reset cancelled")
            return

    service = create_data_sync_service(config)
    try:
        service.start()
        service.reset()
    except RepositoryError as e:
        logger.error(f"Reset failed: {e}")
        sys.exit(1)
    finally:
        service.close()

    info = service.sync_info
    logger.info(f"✓ State reset at {info.last_synced_at}")
    logger.info(f"  Items: {len(service.state.items)}, users: {len(service.state.users)}")


if __name__ == "__main__":
    main()
