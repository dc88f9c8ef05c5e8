"""
Pytest configuration for the sunk test suite.

Puts the project root on the Python path so test files can import
from src (e.g. ``from src.sunk.client import SubsonicClient``).
"""
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
