"""Package entry point for ``python -m pronunciation_assessor``.

Delegates to the CLI. Use ``python -m pronunciation_assessor.server.app``
to start the HTTP API instead.
"""

from pronunciation_assessor.cli import main

if __name__ == "__main__":
    main()
