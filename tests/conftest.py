
import os
import sys


def pytest_configure():
    # Make `common`, `state` and `session` importable without installing the project
    src_path = os.path.join(os.path.abspath(os.path.dirname(os.path.dirname(__file__))), "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)
