"""Run with: python -m lead_engine"""

from .cli.main import main

if __name__ == "__main__":
    main()
