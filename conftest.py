"""Root conftest.py: ensure the local source tree takes priority over installed packages."""
import sys
import os

# Insert the project root at the beginning of sys.path so that the local
# rconf/ package takes precedence over an installed copy.
_project_root = os.path.dirname(os.path.abspath(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)
