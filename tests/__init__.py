# Package marker so tests can import `tests.helpers`; keeps the repo root importable
# when pytest is started from another directory.
import sys
from pathlib import Path

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))
