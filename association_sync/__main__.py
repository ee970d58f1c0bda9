"""Allow running as: python -m association_sync"""
import sys

from association_sync.cli import main

sys.exit(main())
