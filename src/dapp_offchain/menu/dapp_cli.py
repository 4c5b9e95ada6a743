"""
dApp CLI Interface

Console interface that uses the core dApp library.
Handles user interactions, menus, and display formatting.
"""

import asyncio
import logging

from ..config import Settings, settings
from ..errors import DappError, ProviderUnavailable, UserRejected, ValidationError
from ..runtime import DappRuntime
from ..units import short_address
from .menu_formatter import MenuFormatter


logger = logging.getLogger(__name__)


class DappCLI:
    """Console interface for XToken dApp operations"""

    def __init__(self, runtime: DappRuntime, menu: MenuFormatter = None):
        self.runtime = runtime
        self.state = runtime.state
        self.menu = menu or MenuFormatter()

    async def ask(self, prompt: str) -> str:
        # input() blocks, keep the event loop free for the pollers
        return await asyncio.to_thread(self.menu.get_input, prompt)

    def network_label(self) -> str:
        network = self.state.network
        if network is None:
            return "Not connected" if self.runtime.provider else "No provider found"
        return f"{network.name} ({network.chain_id})"

    def display_status(self):
        """Display wallet, network and contract information"""
        state = self.state
        self.menu.print_section("WALLET")
        if state.account:
            self.menu.print_line(f"Connected: {short_address(state.account)}")
        else:
            self.menu.print_line("Not connected")
        self.menu.print_line(f"Network:   {self.network_label()}")

        network = state.network
        if network is not None and not network.is_expected(self.runtime.settings.expected_chain_id):
            self.menu.print_warning(
                f"You are not connected to the expected network (Chain ID: {self.runtime.settings.expected_chain_id})"
            )

        self.menu.print_section("TOKEN")
        self.menu.print_line(f"Name:    {state.token.name}")
        self.menu.print_line(f"Symbol:  {state.token.symbol}")
        self.menu.print_line(f"Balance: {state.token.balance} {state.token.symbol}")

        self.menu.print_section("NFT")
        self.menu.print_line(f"Name:     {state.nft.name}")
        self.menu.print_line(f"Symbol:   {state.nft.symbol}")
        self.menu.print_line(f"Mint fee: {state.nft.mint_fee} {state.token.symbol}")
        if state.last_mint:
            self.menu.print_line(f"Last minted token ID: {state.last_mint.token_id}")
            if state.last_mint.token_uri:
                self.menu.print_line(f"Token URI: {state.last_mint.token_uri}")
        self.menu.print_footer()

    def display_events(self):
        """Display the event log, most recent first"""
        self.menu.print_section("EVENT LOG")
        events = self.state.events
        if not events:
            self.menu.print_line("No events yet")
        for event in events:
            self.menu.print_line(self.menu.describe_event(event, self.state.token.symbol))
        if self.state.last_mint:
            self.menu.print_separator()
            self.menu.print_line(f"Last minted token ID: {self.state.last_mint.token_id}")
        self.menu.print_footer()

    async def connect_menu(self):
        try:
            result = await self.runtime.session.connect()
            self.menu.print_success(f"Connected {short_address(result.account)} on {result.network.name}")
        except ProviderUnavailable:
            self.menu.print_error(f"No wallet provider found at {self.runtime.settings.rpc_url}")
        except UserRejected:
            self.menu.print_error("Connection request was rejected")
        except DappError as e:
            self.menu.print_error(f"Failed to connect wallet: {e}")

    async def transfer_menu(self):
        recipient = await self.ask("Recipient address")
        amount = await self.ask(f"Amount ({self.state.token.symbol or 'tokens'})")
        self.state.set_transfer_inputs(recipient, amount)

        try:
            result = await self.runtime.orchestrator.transfer_tokens()
            self.menu.print_success(f"Transfer confirmed: {result.tx_hash}")
            self.print_explorer_link(result.tx_hash)
        except ValidationError as e:
            self.menu.print_error(str(e))
        except UserRejected:
            self.menu.print_error("Transaction was rejected")
        except DappError:
            self.menu.print_error("Failed to transfer tokens")

    async def mint_menu(self):
        self.menu.print_info(f"Minting costs {self.state.nft.mint_fee or '?'} {self.state.token.symbol}")
        try:
            result = await self.runtime.orchestrator.mint_nft()
            if result.approve_tx_hash:
                self.menu.print_info(f"Mint fee approved: {result.approve_tx_hash}")
            self.menu.print_success(f"NFT minted: {result.tx_hash}")
            self.print_explorer_link(result.tx_hash)
        except ValidationError as e:
            self.menu.print_error(str(e))
        except UserRejected:
            self.menu.print_error("Transaction was rejected")
        except DappError:
            self.menu.print_error("Failed to mint NFT")

    async def verify_owner_menu(self):
        """Look up the owner of a token id"""
        try:
            token_id = int(await self.ask("Token ID"))
        except ValueError:
            self.menu.print_error("Please enter a valid number")
            return

        try:
            owner = await self.runtime.loader.owner_of(token_id)
            self.menu.print_success(f"NFT #{token_id} owner: {owner}")
        except DappError as e:
            self.menu.print_error(str(e))

    def print_explorer_link(self, tx_hash: str):
        if self.runtime.chain_context is None:
            return
        url = self.runtime.chain_context.get_explorer_url(tx_hash)
        if url:
            self.menu.print_info(f"Check your transaction at: {url}")

    async def interactive_menu(self):
        """Main interactive menu for dApp operations"""
        while True:
            self.menu.print_header(self.runtime.settings.app_name.upper(), "Token & NFT Interface")
            self.menu.print_status_bar(
                network=self.network_label(),
                account=self.state.account,
                balance=self.state.token.balance,
                symbol=self.state.token.symbol,
            )

            self.menu.print_section("MAIN MENU")
            if self.state.account:
                self.menu.print_menu_option("1", "Reconnect Wallet")
            else:
                self.menu.print_menu_option("1", "Connect Wallet")
            self.menu.print_menu_option("2", "Display Wallet & Contract Info")
            self.menu.print_menu_option("3", "Transfer Tokens")
            self.menu.print_menu_option("4", "Mint NFT")
            self.menu.print_menu_option("5", "Show Event Log")
            self.menu.print_menu_option("6", "Verify NFT Owner")
            self.menu.print_separator()
            self.menu.print_menu_option("0", "Exit Application")
            self.menu.print_footer()

            choice = await self.ask("Select an option (0-6)")

            if choice == "0":
                self.menu.print_info("Goodbye!")
                break
            elif choice == "1":
                await self.connect_menu()
            elif choice == "2":
                self.display_status()
            elif choice == "3":
                await self.transfer_menu()
            elif choice == "4":
                await self.mint_menu()
            elif choice == "5":
                self.display_events()
            elif choice == "6":
                await self.verify_owner_menu()
            else:
                self.menu.print_error("Invalid option. Please try again.")


async def run(settings: Settings):
    runtime = await DappRuntime.from_settings(settings)
    await runtime.start()
    logger.info(f"Runtime started against {settings.rpc_url}")
    try:
        await DappCLI(runtime).interactive_menu()
    finally:
        await runtime.close()


def main():
    """Main function to run the CLI"""

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        print("Initializing dApp...")
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        print("\nInterrupted")


if __name__ == "__main__":
    main()
