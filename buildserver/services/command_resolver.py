# services/command_resolver.py

"""
Command resolution - maps a command and its arguments to what the host can execute
"""

import sys
from typing import List, Protocol, Sequence, Tuple

# Package managers ship as .cmd shims on Windows and cannot be spawned directly
WINDOWS_SHELL_COMMANDS = frozenset({"npm", "npx", "yarn", "pnpm"})


class CommandResolver(Protocol):
    def resolve(self, command: str, args: Sequence[str]) -> Tuple[str, List[str]]:
        ...


class DirectResolver:
    """Runs the command as given"""

    def resolve(self, command: str, args: Sequence[str]) -> Tuple[str, List[str]]:
        return command, list(args)


class ShellWrapResolver:
    """Routes selected commands through the platform shell, e.g. cmd.exe /c npm install"""

    def __init__(self, shell: str, shell_args: Sequence[str], commands=WINDOWS_SHELL_COMMANDS):
        self.shell = shell
        self.shell_args = list(shell_args)
        self.commands = frozenset(commands)

    def resolve(self, command: str, args: Sequence[str]) -> Tuple[str, List[str]]:
        if command not in self.commands:
            return command, list(args)
        return self.shell, [*self.shell_args, command, *args]


def resolver_for_platform(platform: str = sys.platform) -> CommandResolver:
    if platform == "win32":
        return ShellWrapResolver("cmd.exe", ["/c"])
    return DirectResolver()
