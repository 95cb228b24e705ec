"""CLI module for StudioCal.

Provides argument parsing, settings resolution and dispatch to the
``export``, ``import`` and ``serve`` commands.
"""

from typing import List, Optional

from ..config.settings import StudioCalSettings, get_settings
from ..utils.logging import apply_command_line_overrides, setup_logging
from .commands import run_export, run_import, run_serve
from .parser import create_parser, parse_date

COMMANDS = {
    "export": run_export,
    "import": run_import,
    "serve": run_serve,
}


async def main_entry(argv: Optional[List[str]] = None) -> int:
    """Main entry point with argument parsing.

    Args:
        argv: Argument list (defaults to ``sys.argv[1:]``)

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.config:
        settings = StudioCalSettings(config_file_path=args.config)
    else:
        settings = get_settings()

    settings = apply_command_line_overrides(settings, args)
    setup_logging(settings)

    return await COMMANDS[args.command](args, settings)


__all__ = [
    "create_parser",
    "main_entry",
    "parse_date",
    "run_export",
    "run_import",
    "run_serve",
]
