import sys
import signal
import argparse
import logging
import threading
from typing import Optional, List, NoReturn

from gmail_relay.utils.config import Config, DEFAULT_CONFIG_FILE
from gmail_relay.utils.colors import Colors
from gmail_relay.utils.errors import AuthError, ConfigurationError, RemoteError
from gmail_relay.utils.logging_utils import setup_logging
from gmail_relay.utils.validators import check_default_credentials


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gmail-relay",
        description="Relay matching Gmail messages to Telegram, translated by Gemini",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--generate-token",
        action="store_true",
        help="Run the Gmail OAuth consent flow, save the token and exit",
    )
    return parser


class AppRunner:
    """Encapsulates the startup, configuration verification, and execution logic of the relay."""

    def __init__(self, args: Optional[List[str]] = None) -> None:
        """
        Initialize the runner with CLI arguments.

        Args:
            args: Command line arguments without the program name
                (defaults to sys.argv[1:])
        """
        self.options = build_parser().parse_args(args)
        self.config_file = self.options.config
        self.stop_event = threading.Event()
        self.config: Optional[Config] = None

    def run(self) -> None:
        """Execute the main application flow."""
        self.setup_signal_handlers()
        self.print_banner()

        if self.options.generate_token:
            self.load_gmail_config()
            setup_logging(self.config.system)
            self.generate_token()
        else:
            self.load_config()
            setup_logging(self.config.system)
            self.start_pipeline()

    def setup_signal_handlers(self) -> None:
        """Register handlers for graceful shutdown."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame) -> None:
        """Handle shutdown signals; the poll loop exits before its next cycle."""
        print("\nReceived shutdown signal, stopping gracefully...")
        self.stop_event.set()

    def print_banner(self) -> None:
        """Print the application startup banner."""
        print(Colors.colorize("=" * 80, Colors.CYAN))
        print(Colors.header("Gmail to Telegram Relay"))
        print(Colors.colorize("Filtered Gmail messages, translated and delivered to Telegram", Colors.GREY))
        print(Colors.colorize("=" * 80, Colors.CYAN))
        print()

    def load_config(self) -> None:
        """Load and validate the configuration, exiting on any problem."""
        try:
            self.config = Config(self.config_file)
            self.config.validate()
        except ConfigurationError as e:
            self._fail(f"Configuration Error: {e}")

        errors = check_default_credentials(self.config)
        if errors:
            print("\n" + Colors.error("❌ Configuration Error: Default credentials detected"))
            print(Colors.colorize("The following issues must be resolved before starting:", Colors.GREY) + "\n")

            for error in errors:
                print(f"  • {Colors.colorize(error, Colors.YELLOW)}")

            print(f"\nPlease edit {Colors.colorize(self.config_file, Colors.BOLD)} with your actual credentials.")
            sys.exit(1)

    def load_gmail_config(self) -> None:
        """
        Load the configuration for token generation.

        Authorization only touches the gmail section, so Telegram and Gemini
        settings may still hold their example values at this point.
        """
        try:
            self.config = Config(self.config_file)
            self.config.validate_gmail()
        except ConfigurationError as e:
            self._fail(f"Configuration Error: {e}")

    def generate_token(self) -> NoReturn:
        """Authorize Gmail access interactively and exit."""
        from gmail_relay.modules.gmail_auth import authorize_interactive

        try:
            authorize_interactive(self.config.gmail)
        except AuthError as e:
            self._fail(f"Authorization failed: {e}")

        print(Colors.success(f"✅ Gmail OAuth token saved to {self.config.gmail.token_file}"))
        sys.exit(0)

    def start_pipeline(self) -> None:
        """Instantiate and start the main pipeline."""
        from gmail_relay.main import RelayPipeline

        try:
            pipeline = RelayPipeline.from_config(self.config, interactive=sys.stdin.isatty())
        except (AuthError, RemoteError) as e:
            logging.getLogger("AppRunner").error(f"Startup failed: {e}")
            self._fail(f"Startup failed: {e}")

        print(Colors.success("🚀 Starting relay..."))
        pipeline.run(self.stop_event)

    @staticmethod
    def _fail(message: str) -> NoReturn:
        print(Colors.error(f"❌ {message}"))
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    AppRunner().run()


if __name__ == "__main__":
    main()
