from typing import Dict, Optional, Tuple

import typer

from monoweave.common.messaging import protocols

# level -> (colour, bold)
_STYLES: Dict[str, Tuple[Optional[str], bool]] = {
    "debug": (typer.colors.BRIGHT_BLACK, False),
    "info": (None, False),
    "success": (typer.colors.GREEN, True),
    "warning": (typer.colors.YELLOW, False),
    "error": (typer.colors.RED, True),
}


class CliRenderer(protocols.Renderer):
    """
    Terminal renderer for apply runs.

    Step-level debug output (step start/finish, per-package moves) is only
    shown with --verbose. Errors are emphasised so they stand out from
    forwarded install output.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def render(self, message: str, level: str) -> None:
        if level == "debug" and not self.verbose:
            return
        fg, bold = _STYLES.get(level, (None, False))
        typer.secho(message, fg=fg, bold=bold or None)
