"""Console script entrypoint for the hookpress CLI."""

from .main import main

if __name__ == "__main__":
    raise SystemExit(main())
