"""Module entrypoint for ``python -m browsey``.

All argument parsing and runtime setup happen in ``browsey.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
