"""Entry point for running the server as a module.

Usage:
    python -m spe_mcp serve
    python -m spe_mcp --help
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before any other imports that need env vars

from spe_mcp.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
