import os

import matplotlib

os.environ.setdefault("MPLBACKEND", "Agg")


def pytest_sessionstart(session):
    # Force a pure headless backend
    matplotlib.use("Agg")
