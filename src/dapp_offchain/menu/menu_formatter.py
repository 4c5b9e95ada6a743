"""
Menu formatting utilities for the dApp CLI interface.
Provides consistent styling, colors, and layout for interactive menus.
"""

from ..models import NFTMintEvent, NFTTransferEvent, TokenTransferEvent
from ..units import short_address


# ANSI color codes for menu styling
class Colors:
    HEADER = "\033[95m"
    OKBLUE = "\033[94m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


class MenuFormatter:
    """Menu formatting class with consistent styling"""

    def __init__(self, width: int = 80):
        self.width = width

    def print_header(self, title: str, subtitle: str = None):
        """Print a header box"""
        print("\n" + Colors.HEADER + "╔" + "═" * (self.width - 2) + "╗" + Colors.ENDC)
        print(Colors.HEADER + "║" + Colors.BOLD + f"{title:^{self.width - 2}}" + Colors.ENDC + Colors.HEADER + "║" + Colors.ENDC)
        if subtitle:
            print(
                Colors.HEADER + "║" + Colors.OKBLUE + f"{subtitle:^{self.width - 2}}" + Colors.ENDC
                + Colors.HEADER + "║" + Colors.ENDC
            )
        print(Colors.HEADER + "╚" + "═" * (self.width - 2) + "╝" + Colors.ENDC)

    def print_status_bar(self, network: str, account: str = None, balance: str = None, symbol: str = ""):
        """Print a status information bar"""
        status_line = f"Network: {network}"
        if account:
            status_line += f" | Account: {short_address(account)}"
        if balance:
            status_line += f" | Balance: {balance} {symbol}".rstrip()

        print(f"{Colors.OKBLUE}┌{Colors.ENDC}" + "─" * (self.width - 2) + f"{Colors.OKBLUE}┐{Colors.ENDC}")
        print(f"{Colors.OKBLUE}│{Colors.ENDC} {status_line:<{self.width - 4}} {Colors.OKBLUE}│{Colors.ENDC}")
        print(f"{Colors.OKBLUE}└{Colors.ENDC}" + "─" * (self.width - 2) + f"{Colors.OKBLUE}┘{Colors.ENDC}")

    def print_section(self, title: str):
        """Print a section separator"""
        print(f"\n{Colors.OKBLUE}┌─ {Colors.BOLD}{title}{Colors.ENDC} {Colors.OKBLUE}{'─' * (self.width - len(title) - 4)}{Colors.ENDC}")

    def print_line(self, text: str = ""):
        print(f"{Colors.OKBLUE}│{Colors.ENDC} {text}")

    def print_menu_option(self, number: str, description: str):
        print(f"{Colors.OKBLUE}│{Colors.ENDC} {Colors.BOLD}{number:>2}{Colors.ENDC}. {description}")

    def print_separator(self):
        print(f"{Colors.OKBLUE}├{Colors.ENDC}" + "─" * (self.width - 2))

    def print_footer(self):
        print(f"{Colors.OKBLUE}└{Colors.ENDC}" + "─" * (self.width - 2))

    def print_warning(self, message: str):
        print(f"\n{Colors.WARNING}⚠ Warning: {message}{Colors.ENDC}")

    def print_success(self, message: str):
        print(f"\n{Colors.OKGREEN}✓ {message}{Colors.ENDC}")

    def print_error(self, message: str):
        print(f"\n{Colors.FAIL}✗ Error: {message}{Colors.ENDC}")

    def print_info(self, message: str):
        print(f"\n{Colors.OKBLUE}ℹ {message}{Colors.ENDC}")

    def get_input(self, prompt: str) -> str:
        """Get user input with formatted prompt"""
        return input(f"{Colors.BOLD}> {prompt}: {Colors.ENDC}").strip()

    def describe_event(self, event, token_symbol: str = "") -> str:
        """One-line description of a domain event"""
        if not isinstance(event, (TokenTransferEvent, NFTMintEvent, NFTTransferEvent)):
            raise TypeError(f"Unknown event type: {type(event).__name__}")

        when = event.timestamp.strftime("%H:%M:%S")
        if isinstance(event, TokenTransferEvent):
            return (
                f"[{when}] Token Transfer  {short_address(event.from_address)} → "
                f"{short_address(event.to_address)}  {event.amount} {token_symbol}".rstrip()
            )
        if isinstance(event, NFTMintEvent):
            return f"[{when}] NFT Minted      #{event.token_id} → {short_address(event.owner)}"
        return (
            f"[{when}] NFT Transfer    #{event.token_id}  {short_address(event.from_address)} → "
            f"{short_address(event.to_address)}"
        )
