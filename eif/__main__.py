"""
EIF Module Entry Point
=======================

Allows running the CLI via: python -m eif
"""

from eif.cli import main

if __name__ == "__main__":
    main()
