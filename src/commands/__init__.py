"""Command implementations behind the ``symaddr`` CLI."""

from commands.channels import run_channels
from commands.deadcode import run_deadcode, run_unused
from commands.glob import run_glob
from commands.ls import run_ls
from commands.package import run_package
from commands.read import run_read
from commands.report import Report
from commands.search import run_search
from commands.session import Session, open_session
from commands.symbol import run_symbol

__all__ = [
    "Report",
    "Session",
    "open_session",
    "run_channels",
    "run_deadcode",
    "run_glob",
    "run_ls",
    "run_package",
    "run_read",
    "run_search",
    "run_symbol",
    "run_unused",
]
