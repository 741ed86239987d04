#!/usr/bin/env python3
"""
Audit hotel images and write the migration manifest.

Walks the hotel catalog, classifies every image by origin and placement,
and writes image-audit.json plus a Markdown report.

Usage:
    python scripts/audit_images.py --catalog data/hotels.json
    python scripts/audit_images.py --catalog data/hotels.json --report IMAGE_AUDIT.md

Requires:
    - A hotel catalog JSON file (array of hotels, or {"hotels": [...]})
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
    sys.exit(main(["audit", *sys.argv[1:]]))
