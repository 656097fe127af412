import pathlib
import sys

# Ensure repo root on sys.path for direct module imports when running tests locally.
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
