from __future__ import annotations

import json
from typing import Any

from rich.console import Console

console = Console()
# Error console writes to stderr - important for --json mode where stdout is redirected
error_console = Console(stderr=True)


def print_json(payload: Any) -> None:
    """Print ``payload`` as JSON on stdout, stringifying unknown types."""
    console.print_json(json.dumps(payload, default=str))
