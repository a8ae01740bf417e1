"""Entry point for the tprview CLI."""

from __future__ import annotations

from tprview.app import main as run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
