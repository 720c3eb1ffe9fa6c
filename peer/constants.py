"""Peer shell constants and styling."""

from prompt_toolkit.styles import Style

COMMANDS = ["register", "login", "logout", "upload", "search", "download", "status", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#2BB673 bold",
        "command": "#0088ff bold",
    }
)

GREEN = "\033[38;2;43;182;115m"
RESET = "\033[0m"

LOGO = f"""{GREEN}
 ██████╗ ███████╗███████╗██████╗ ███████╗██╗  ██╗ █████╗ ██████╗ ███████╗
 ██╔══██╗██╔════╝██╔════╝██╔══██╗██╔════╝██║  ██║██╔══██╗██╔══██╗██╔════╝
 ██████╔╝█████╗  █████╗  ██████╔╝███████╗███████║███████║██████╔╝█████╗
 ██╔═══╝ ██╔══╝  ██╔══╝  ██╔══██╗╚════██║██╔══██║██╔══██║██╔══██╗██╔══╝
 ██║     ███████╗███████╗██║  ██║███████║██║  ██║██║  ██║██║  ██║███████╗
 ╚═╝     ╚══════╝╚══════╝╚═╝  ╚═╝╚══════╝╚═╝  ╚═╝╚═╝  ╚═╝╚═╝  ╚═╝╚══════╝
{RESET}"""

WELCOME_TITLE = "PeerShare - peer-to-peer file sharing"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "peershare> "

HELP_TEXT = """Available commands:
  register <username> <password>      Register new user account
  login <username> <password>         Login and start sharing this node's files
  logout                              Logout (your files leave the catalog)
  upload <path> [path ...]            Share local files with other peers
  search [keyword]                    Find files by name (empty = all)
  download <file_id>                  Fetch a file from the peer that owns it
  status                              Show login and local storage state
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Logout and exit

Press Ctrl-C during a download to cancel it.
Examples:
  register alice mypassword123
  login alice mypassword123
  upload ~/notes.txt "quarterly report.pdf"
  search report
  download 42"""
