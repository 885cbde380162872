"""Main script to run the bid tab aggregation pipeline."""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bidtabs.cli import main


if __name__ == "__main__":
    sys.exit(main())
