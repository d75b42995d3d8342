"""!
@brief Office Deploy package root.
@details Modules under this namespace reconcile requested Office editions
against the installed Click-to-Run inventory, remove legacy MSI suites, build
the Office Deployment Tool configuration, and drive ``setup.exe``.
"""

__all__ = [
    "main",
    "deploy",
    "reconcile",
    "legacy",
    "odt_config",
    "detect",
    "registry_tools",
    "command_runner",
    "processes",
    "session",
    "ui",
    "config",
    "logging_ext",
    "constants",
    "version",
]
