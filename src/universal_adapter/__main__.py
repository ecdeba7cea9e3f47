"""Run the bridge: ``python -m universal_adapter``."""

from .ext.http import serve

if __name__ == "__main__":
    serve()
