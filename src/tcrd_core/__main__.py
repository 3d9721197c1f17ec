"""
Entry point for running TCRD core as a module.

Connects, builds the global ontologies, reports status and exits.

Usage:
    python -m tcrd_core
"""

from tcrd_core.core import main

if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
