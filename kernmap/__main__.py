"""
Kernmap Module Entry Point
===========================

Allows running the Kernmap CLI via: python -m kernmap
"""

from kernmap.cli import main

if __name__ == "__main__":
    main()
