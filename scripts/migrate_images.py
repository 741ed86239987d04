#!/usr/bin/env python3
"""
Migrate externally hosted hotel images into owned storage.

Reads the audit manifest, downloads every entry marked for migration,
uploads it to the migration container, records provenance and links it to
its hotel. Writes migration-results.json and image-url-mapping.json.

Usage:
    python scripts/migrate_images.py
    python scripts/migrate_images.py --dry-run
    python scripts/migrate_images.py --manifest image-audit.json

Requires:
    - .env file with storage and database credentials
    - image-audit.json (run scripts/audit_images.py first)
"""

import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from asset_pipeline.main import main


if __name__ == '__main__':
    sys.exit(main(["migrate", *sys.argv[1:]]))
