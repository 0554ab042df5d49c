"""CLI menu: print main menu."""

from typing import Callable, Dict

from pim_prime.cli.views import W

MENU_OPTIONS: Dict[str, str] = {
    "1": "List and approve pending requests",
    "2": "Request role activation",
    "3": "View active roles",
    "4": "Disconnect",
    "5": "Exit",
}

# Options shown but not wired up yet
RESERVED_OPTIONS = frozenset({"2", "3"})


def print_menu(output_fn: Callable[[str], None] = print, title: str = "PIM PRIME") -> None:
    """Print the main interactive menu."""
    output_fn("")
    output_fn("=" * W)
    output_fn(f"  {title}".center(W))
    output_fn("=" * W)
    output_fn("")
    for key, label in MENU_OPTIONS.items():
        suffix = "  (not available)" if key in RESERVED_OPTIONS else ""
        output_fn(f"    {key}   {label}{suffix}")
    output_fn("")
