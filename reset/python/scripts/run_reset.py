from pathlib import Path
import sys

# Add reset/python to sys.path so 'touch_reset' can be imported when running this script directly
THIS_DIR = Path(__file__).resolve().parent
PY_ROOT = THIS_DIR.parent  # reset/python
sys.path.insert(0, str(PY_ROOT))

from touch_reset.main import main


if __name__ == "__main__":
    sys.exit(main())
