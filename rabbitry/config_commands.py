"""Configuration commands for the rabbitry CLI."""

from cyclopts import App

from rabbitry.config import DEFAULTS, get_config

config_app = App(name="config", help="Manage configuration")

STORAGE_BACKENDS = ("file", "memory")


@config_app.command
def set(key: str, value: str, global_: bool = False) -> None:
    """Set a configuration setting.

    Args:
        key: Configuration key, e.g. storage.path
        value: Configuration value
        global_: If True, set in global config. If False, set in local config.
    """
    if key == "storage.backend" and value not in STORAGE_BACKENDS:
        raise ValueError(f"storage.backend must be one of: {', '.join(STORAGE_BACKENDS)}")
    if key == "user.id" and not value.isdigit():
        raise ValueError("user.id must be a positive integer")

    get_config(use_global=global_).set(key, value)
    print(f"Set {key} = {value} ({'global' if global_ else 'local'})")


@config_app.command
def unset(key: str, global_: bool = False) -> None:
    """Unset a configuration setting, restoring its default."""
    get_config(use_global=global_).unset(key)
    print(f"Unset {key} ({'global' if global_ else 'local'})")


@config_app.command
def get(key: str, global_: bool = False) -> None:
    """Get the value of a configuration setting."""
    value = get_config(use_global=global_).get(key)
    if value is None:
        print(f"{key} is not set")
    else:
        print(f"{key} = {value}")


@config_app.command(name="list")
def list_config(global_: bool = False) -> None:
    """List configuration settings, with defaults for keys left unset."""
    settings = get_config(use_global=global_).list()

    print("Settings:\n")
    for key, value in settings.items():
        print(f"{key} = {value}")
    for key, value in DEFAULTS.items():
        if key not in settings:
            print(f"{key} = {value} (default)")
