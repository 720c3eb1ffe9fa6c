"""Interactive peer shell built on prompt_toolkit."""

import os
import sys
from pathlib import Path
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, InMemoryHistory

from peer.commands import (
    get_node,
    handle_register,
    handle_login,
    handle_logout,
    handle_upload,
    handle_search,
    handle_download,
    handle_status,
)
from peer.constants import (
    COMMANDS,
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from peer.models import (
    RegisterCommand,
    LoginCommand,
    LogoutCommand,
    UploadCommand,
    SearchCommand,
    DownloadCommand,
    StatusCommand,
)
from peer.node import PeerNode
from peer.parser import ParseError, parse_command

HANDLERS = {
    RegisterCommand: handle_register,
    LoginCommand: handle_login,
    LogoutCommand: handle_logout,
    UploadCommand: handle_upload,
    SearchCommand: handle_search,
    DownloadCommand: handle_download,
    StatusCommand: handle_status,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    os.system("cls" if sys.platform == "win32" else "clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj, node: Optional[PeerNode] = None) -> str:
    """Route a parsed command to its handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj).__name__}"
    return handler(cmd_obj, node)


def session_toolbar(node: PeerNode) -> str:
    if node.session is None:
        return " not logged in"
    return f" {node.session.username} sharing at {node.session.endpoint}"


def _history_for(node: PeerNode):
    history_path = Path(node.config.config_path).parent / 'history'
    try:
        history_path.touch(exist_ok=True)
    except OSError:
        return InMemoryHistory()
    return FileHistory(str(history_path))


def repl_loop(node: Optional[PeerNode] = None) -> None:
    """Read commands until 'exit' or end of input."""
    if node is None:
        node = get_node()

    session: PromptSession = PromptSession(
        completer=WordCompleter(COMMANDS, ignore_case=True),
        history=_history_for(node),
        style=STYLE,
        bottom_toolbar=lambda: session_toolbar(node),
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = session.prompt([("class:prompt", PROMPT_TEXT)]).strip()
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break

        if not user_input:
            continue
        if user_input == "exit":
            print("Goodbye!")
            break
        if user_input == "help":
            print(HELP_TEXT)
            continue
        if user_input == "clear":
            clear_screen()
            show_welcome()
            continue

        try:
            print(dispatch_command(parse_command(user_input), node))
        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            print("\nCancelled.")
