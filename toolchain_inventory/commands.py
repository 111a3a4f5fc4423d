"""
Shell command generation for inventory actions.

Nothing here executes a command: every function returns a CommandPlan for
the user to review and copy.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import Platform, ToolRecord, ToolType
from .normalize import is_sentinel_path


@dataclass(frozen=True)
class CommandPlan:
    """
    Command shown in the confirmation dialog.

    Attributes:
        title: Dialog title
        command: Shell command text (may span lines)
        description: What the user should do with it
        destructive: Whether running it removes something
    """
    title: str
    command: str
    description: str
    destructive: bool = False

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "command": self.command,
            "description": self.description,
            "destructive": self.destructive,
        }


@dataclass(frozen=True)
class InstallOption:
    """Entry of the curated install menu."""
    label: str
    command: str
    description: str


INSTALL_OPTIONS: dict[ToolType, tuple[InstallOption, ...]] = {
    ToolType.JAVA: (
        InstallOption("OpenJDK 21 (LTS)", "brew install openjdk@21", "Latest Long Term Support"),
        InstallOption("OpenJDK 17 (LTS)", "brew install openjdk@17", "Previous LTS, widely used"),
        InstallOption("OpenJDK 11 (LTS)", "brew install openjdk@11", "Legacy Enterprise Standard"),
        InstallOption("OpenJDK 8", "brew install openjdk@8", "Legacy Support"),
    ),
    ToolType.PYTHON: (
        InstallOption("Python 3.12", "pyenv install 3.12.1", "Latest Stable"),
        InstallOption("Python 3.11", "pyenv install 3.11.7", "Stable, high performance"),
        InstallOption("Python 3.10", "pyenv install 3.10.13", "Mature release"),
        InstallOption("Anaconda 3", "brew install --cask anaconda", "Data Science Platform"),
    ),
    ToolType.NODE: (
        InstallOption("Node 20 (LTS)", "nvm install 20", "Active LTS (Iron)"),
        InstallOption("Node 18 (LTS)", "nvm install 18", "Maintenance LTS (Hydrogen)"),
        InstallOption("Node 21", "nvm install 21", "Current Latest Features"),
        InstallOption("Node 16", "nvm install 16", "Legacy"),
    ),
    ToolType.GO: (
        InstallOption("Go 1.22", "brew install go", "Latest Release"),
        InstallOption("Go 1.21", "brew install go@1.21", "Previous Stable"),
        InstallOption("Go 1.20", "brew install go@1.20", "Legacy"),
    ),
}

# Environment variable pointing at a toolchain home
HOME_VARIABLES = {
    ToolType.JAVA: "JAVA_HOME",
    ToolType.GO: "GOROOT",
}


def install_options(tool_type: ToolType | str) -> tuple[InstallOption, ...]:
    """
    Curated install menu for a tool family.

    Raises:
        ValueError: If the tool type has no install menu
    """
    if isinstance(tool_type, str):
        tool_type = ToolType(tool_type.upper())
    if tool_type not in INSTALL_OPTIONS:
        raise ValueError(f"No install options for tool type: {tool_type.value}")
    return INSTALL_OPTIONS[tool_type]


def install_command(option: InstallOption) -> CommandPlan:
    return CommandPlan(
        title=f"Install {option.label}",
        command=option.command,
        description="Run this command in terminal to install.",
    )


def _quote(path: str) -> str:
    return f'"{path}"'


def uninstall_command(record: ToolRecord, platform: Platform | str = Platform.POSIX) -> CommandPlan:
    """
    Command removing an installation, chosen from its provenance.

    Raises:
        ValueError: If neither a manager nor a concrete path identifies what to remove
    """
    platform = Platform.coerce(platform)
    source = record.provenance.lower()
    major = record.version.split(".")[0]

    if source == "package-manager":
        # Package-manager records are named after their package
        manager = "scoop" if platform == Platform.WINDOWS else "brew"
        command = f"{manager} uninstall {record.display_name}"
    elif "brew" in source:
        command = f"brew uninstall {record.tool_type.value.lower()}@{major}"
    elif record.tool_type == ToolType.NODE:
        command = f"nvm uninstall {record.version}"
    elif record.tool_type == ToolType.PYTHON and source != "system-detected":
        command = f"pyenv uninstall {record.version}"
    elif is_sentinel_path(record.install_path):
        raise ValueError(
            f"Cannot build uninstall command for {record.display_name} {record.version}: "
            "install path is unknown"
        )
    elif platform == Platform.WINDOWS:
        command = f"rmdir /s /q {_quote(record.install_path)}"
    else:
        command = f"sudo rm -rf {_quote(record.install_path)}"

    return CommandPlan(
        title=f"Uninstall {record.display_name}",
        command=command,
        description="Run this in terminal to uninstall, then refresh.",
        destructive=True,
    )


def set_global_command(record: ToolRecord, platform: Platform | str = Platform.POSIX) -> CommandPlan:
    """
    Command making an installation the global default.

    Raises:
        ValueError: If a path-based switch is needed but the path is unknown
    """
    platform = Platform.coerce(platform)

    if record.tool_type == ToolType.NODE:
        command = f"nvm use {record.version}"
    elif record.tool_type == ToolType.PYTHON and record.provenance == "pyenv":
        command = f"pyenv global {record.version}"
    elif is_sentinel_path(record.install_path):
        raise ValueError(
            f"Cannot switch to {record.display_name} {record.version}: install path is unknown"
        )
    elif record.tool_type in HOME_VARIABLES:
        var = HOME_VARIABLES[record.tool_type]
        if platform == Platform.WINDOWS:
            command = f'setx {var} {_quote(record.install_path)}\nsetx PATH "%{var}%\\bin;%PATH%"'
        else:
            command = f'export {var}={_quote(record.install_path)}\nexport PATH="${var}/bin:$PATH"'
    elif platform == Platform.WINDOWS:
        command = f'setx PATH "{record.install_path};%PATH%"'
    else:
        command = f'export PATH="{record.install_path}:$PATH"'

    return CommandPlan(
        title=f"Set Global {record.display_name} {record.version}",
        command=command,
        description="Run this to set global environment variables.",
    )


def set_env_var_command(key: str, value: str, platform: Platform | str = Platform.POSIX) -> CommandPlan:
    """Persist an environment variable in the shell profile (or via setx)."""
    platform = Platform.coerce(platform)
    if not key or not key.replace("_", "").isalnum():
        raise ValueError(f"Invalid environment variable name: {key!r}")

    if platform == Platform.WINDOWS:
        command = f'setx {key} "{value}"'
    else:
        command = f"echo 'export {key}=\"{value}\"' >> ~/.zshrc && source ~/.zshrc"

    return CommandPlan(
        title=f"Set {key}",
        command=command,
        description="Run this command to persist the variable for new shells.",
    )


def unset_env_var_command(key: str, platform: Platform | str = Platform.POSIX) -> CommandPlan:
    platform = Platform.coerce(platform)
    if not key or not key.replace("_", "").isalnum():
        raise ValueError(f"Invalid environment variable name: {key!r}")

    if platform == Platform.WINDOWS:
        command = f'REG delete "HKCU\\Environment" /F /V {key}'
    else:
        command = f"unset {key}"

    return CommandPlan(
        title=f"Unset {key}",
        command=command,
        description=(
            "This temporarily unsets it. Please remove the export line from your config file manually."
        ),
        destructive=True,
    )


def pip_uninstall_command(name: str) -> CommandPlan:
    return CommandPlan(
        title=f"Uninstall {name}",
        command=f"pip uninstall {name}",
        description="Run this command to remove the package.",
        destructive=True,
    )


def pip_mirror_command(url: str) -> CommandPlan:
    return CommandPlan(
        title="Set PyPI Mirror",
        command=f"pip config set global.index-url {url}",
        description="Run this command to change your global PyPI mirror source for faster downloads.",
    )
