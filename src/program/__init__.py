"""Program Loader for Go modules."""

from program.loader import load_program, load_program_from_config
from program.models import Package, PackageIdentifier, Program, SourceFile

__all__ = [
    "Package",
    "PackageIdentifier",
    "Program",
    "SourceFile",
    "load_program",
    "load_program_from_config",
]
