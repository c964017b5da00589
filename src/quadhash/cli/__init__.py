"""quadhash CLI package."""

from .app import (
    JsonFormatter,
    configure_logging,
    console_main,
    emit_success,
    generate_csv,
    main,
    run_csv,
    run_demo,
    run_op,
)
from .commands import CLIContext, register_subcommands

__all__ = [
    "CLIContext",
    "JsonFormatter",
    "configure_logging",
    "console_main",
    "emit_success",
    "generate_csv",
    "main",
    "register_subcommands",
    "run_csv",
    "run_demo",
    "run_op",
]
