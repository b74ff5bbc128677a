"""Module entrypoint for ``python -m wsnav``.

Behaves exactly like the ``ws`` console script.
"""

from .cli import entrypoint


if __name__ == "__main__":
    entrypoint()
