"""Entry point for `python -m cachier`.

Usage:
    python -m cachier --resources Deployment.v1.apps --resources StatefulSet.v1.apps
"""

from cachier.main import run

run()
