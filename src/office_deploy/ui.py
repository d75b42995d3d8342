"""!
@brief Plain console prompts.
@details The welcome prompt asks before running applications are closed and
the deployment starts. The error dialog blocks an interactive run until the
operator acknowledges the failure. Silent and non-interactive runs never
prompt.
"""
from __future__ import annotations

import sys
import textwrap
from typing import Callable, Sequence, TextIO

WELCOME_PROMPT = "Continue with the Microsoft Office deployment? (Y/n)"


def _is_interactive_console() -> bool:
    stdin = getattr(sys, "stdin", None)
    isatty = getattr(stdin, "isatty", None)
    return bool(isatty and isatty())


def request_welcome_confirmation(
    title: str,
    running_apps: Sequence[str] = (),
    *,
    input_func: Callable[[str], str] | None = None,
    output: TextIO | None = None,
    interactive: bool | None = None,
) -> bool:
    """!
    @brief Show the welcome banner and ask the operator to proceed.
    @param title Deployment title shown in the banner.
    @param running_apps Applications that will be closed when proceeding.
    @param interactive Override for console detection; when the console is not
    interactive the prompt is skipped and the run proceeds.
    @returns ``True`` when the deployment should continue.
    """

    if interactive is None:
        interactive = _is_interactive_console()
    if not interactive:
        return True

    stream = output or sys.stdout
    print(f"=== {title} ===", file=stream)
    if running_apps:
        print("The following applications will be closed:", file=stream)
        for name in running_apps:
            print(f"  - {name}", file=stream)
        print("Save your work before continuing.", file=stream)

    if input_func is None:
        input_func = input
    try:
        response = input_func(f"{WELCOME_PROMPT} ")
    except EOFError:
        return False

    return response.strip().lower() in ("", "y", "yes")


def show_error_dialog(
    message: str,
    *,
    input_func: Callable[[str], str] | None = None,
    output: TextIO | None = None,
    interactive: bool | None = None,
) -> None:
    """!
    @brief Print ``message`` and wait for the operator to acknowledge it.
    """

    if interactive is None:
        interactive = _is_interactive_console()
    if not interactive:
        return

    stream = output or sys.stderr
    print("Deployment failed:", file=stream)
    print(textwrap.indent(textwrap.fill(message, width=76), "  "), file=stream)
    if input_func is None:
        input_func = input
    try:
        input_func("Press Enter to close. ")
    except EOFError:
        return


__all__ = ["WELCOME_PROMPT", "request_welcome_confirmation", "show_error_dialog"]
