"""Thin runnable wrapper so ``python -m grel_client`` starts the client."""

from grel_client.app import main

if __name__ == "__main__":
    raise SystemExit(main())
