"""
TCRD Core

Service core for the Target Central Resource Database: PANTHER and global
ontology hierarchy reconstruction, concurrent faceted aggregation over
targets, and merging of drug and compound ligand rows.
"""

__version__ = "1.0.0"
__author__ = "TCRD Core Team"


# Lazy import so schemas and services can be used without a database driver
def __getattr__(name):
    if name == "TcrdCore":
        from tcrd_core.core import TcrdCore
        return TcrdCore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["TcrdCore", "__version__"]
