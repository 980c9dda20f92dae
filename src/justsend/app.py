# =============================================================================
# JustSend Command-Line Application
# =============================================================================
# The `justsend` command. Subcommands:
#
#   accounts  list / add / update / remove / default
#   send      compose and send one email
#   sent      list / show / delete / clear / stats / sweep
#
# The app wires the services together (database, keyring, attachment
# store) and hands them to the account manager, composer and history.
# =============================================================================

import argparse
import asyncio
import getpass
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from keyring.errors import KeyringError

from justsend import __app_name__, __version__
from justsend.accounts import AccountError, AccountManager
from justsend.composer import EmailComposer
from justsend.config import Config, ConfigError, print_paths
from justsend.core import SenderAccount, SentEmail
from justsend.history import SentHistory
from justsend.resend import AttachmentError, ResendClient
from justsend.storage import AttachmentStore, Database, Repository, SecretStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the commands need, built once per invocation."""
    config: Config
    repository: Repository
    attachment_store: AttachmentStore
    secret_store: SecretStore

    def account_manager(self) -> AccountManager:
        return AccountManager(self.repository, self.secret_store)

    def history(self) -> SentHistory:
        return SentHistory(self.repository, self.attachment_store)

    def composer(self) -> EmailComposer:
        client_factory = partial(
            ResendClient,
            base_url=self.config.api.base_url,
            timeout=self.config.request_timeout,
        )
        return EmailComposer(
            self.repository,
            self.attachment_store,
            self.secret_store,
            client_factory=client_factory,
            attachment_soft_limit=self.config.attachment_soft_limit_bytes,
        )


@asynccontextmanager
async def open_services(config: Config) -> AsyncIterator[Services]:
    """Connect the database and build the shared services."""
    db = Database()
    await db.connect()
    try:
        yield Services(
            config=config,
            repository=Repository(db),
            attachment_store=AttachmentStore(config.attachments_path()),
            secret_store=SecretStore(),
        )
    finally:
        await db.close()


# =============================================================================
# Accounts
# =============================================================================

def _print_account(account: SenderAccount, has_key: bool) -> None:
    marker = "*" if account.is_default else " "
    notes = ["key" if has_key else "no key"]
    if account.has_signature:
        notes.append("signature")
    print(f"{marker} {account.id[:8]}  {account.website_name:<20} "
          f"{account.email_address:<32} ({', '.join(notes)})")


def _unescape_signature(signature: str | None) -> str | None:
    """Turn a typed "\\n" into a real line break."""
    return signature.replace("\\n", "\n") if signature is not None else None


def _find_account(manager: AccountManager, identifier: str) -> SenderAccount | None:
    account = manager.find(identifier)
    if account is None:
        print(f"No account matches {identifier!r}", file=sys.stderr)
    return account


async def cmd_accounts(args: argparse.Namespace, services: Services) -> int:
    """Handle `justsend accounts ...`."""
    manager = services.account_manager()
    await manager.refresh()

    if args.accounts_command == "list":
        if not manager.accounts:
            print("No accounts yet. Add one with: justsend accounts add NAME EMAIL")
            return 0
        for account in manager.accounts:
            _print_account(account, manager.get_api_key(account) is not None)
        return 0

    if args.accounts_command == "add":
        api_key = args.api_key
        if not api_key:
            # Same website, new address: reuse the key we already have
            api_key = manager.get_existing_api_key(args.name)
            if api_key:
                print(f"Using the API key of the existing {args.name!r} account")
            else:
                api_key = getpass.getpass("Resend API key: ")

        if not manager.validate_api_key_format(api_key):
            print("That doesn't look like a Resend API key (they start with 're_')",
                  file=sys.stderr)
            return 1

        domain = manager.get_existing_domain(args.name)
        if domain and not args.email.lower().endswith(f"@{domain.lower()}"):
            print(f"Note: other {args.name!r} accounts send from @{domain}")

        account = await manager.add_account(
            args.name, args.email, api_key, _unescape_signature(args.signature)
        )
        print(f"Added {account}" + (" (default)" if account.is_default else ""))
        return 0

    account = _find_account(manager, args.account)
    if account is None:
        return 1

    if args.accounts_command == "update":
        if args.api_key and not manager.validate_api_key_format(args.api_key):
            print("That doesn't look like a Resend API key (they start with 're_')",
                  file=sys.stderr)
            return 1
        await manager.update_account(
            account,
            website_name=args.name if args.name is not None else account.website_name,
            email_address=args.email if args.email is not None else account.email_address,
            api_key=args.api_key or "",
            signature=(
                _unescape_signature(args.signature)
                if args.signature is not None else account.signature
            ),
        )
        print(f"Updated {account}")
        return 0

    if args.accounts_command == "remove":
        await manager.delete_account(account)
        print(f"Removed {account}")
        if manager.default_account:
            print(f"Default account: {manager.default_account}")
        return 0

    if args.accounts_command == "default":
        await manager.set_as_default(account)
        print(f"Default account: {account}")
        return 0

    return 2


# =============================================================================
# Send
# =============================================================================

async def cmd_send(args: argparse.Namespace, services: Services) -> int:
    """Handle `justsend send ...`."""
    manager = services.account_manager()
    await manager.refresh()

    if args.account:
        account = _find_account(manager, args.account)
        if account is None:
            return 1
    else:
        account = manager.default_account

    composer = services.composer()

    if args.html_file:
        try:
            composer.html_content = Path(args.html_file).read_text(encoding="utf-8")
        except OSError as e:
            print(f"Could not read {args.html_file}: {e}", file=sys.stderr)
            return 1
    else:
        composer.html_content = args.html or ""

    # Appends the account's signature to the body
    composer.select_account(account)

    composer.to = args.to
    composer.subject = args.subject
    composer.cc = ", ".join(args.cc)
    composer.bcc = ", ".join(args.bcc)
    composer.reply_to = ", ".join(args.reply_to)

    for path in args.attach:
        try:
            composer.add_attachment_from_path(path)
        except AttachmentError as e:
            print(str(e), file=sys.stderr)
            return 1

    if composer.attachments_over_soft_limit:
        limit_mb = services.config.composer.attachment_soft_limit_mb
        print(f"Warning: attachments are over {limit_mb}MB and may be rejected",
              file=sys.stderr)

    result = await composer.send()
    alert = composer.alert
    if alert is not None:
        print(f"{alert.title}: {alert.message}",
              file=sys.stderr if alert.is_error else sys.stdout)

    if result is None:
        return 1

    print(f"Resend id: {result.resend_id}")
    if result.sent_email is None:
        print("Warning: the email was sent but could not be saved to history",
              file=sys.stderr)
    return 0


# =============================================================================
# Sent History
# =============================================================================

def _print_email_detail(email: SentEmail) -> None:
    print(f"Id:       {email.id}")
    print(f"Resend:   {email.resend_id or '-'}")
    print(f"Sent:     {email.sent_at:%Y-%m-%d %H:%M:%S}")
    print(f"From:     {email.from_address}")
    print(f"To:       {email.recipients_summary}")
    if email.cc:
        print(f"Cc:       {', '.join(email.cc)}")
    if email.bcc:
        print(f"Bcc:      {', '.join(email.bcc)}")
    print(f"Subject:  {email.subject}")
    for att in email.attachments:
        print(f"Attached: {att.filename} ({att.human_size}) -> {att.local_path}")
    print()
    print(email.text_content or email.html_content)


async def cmd_sent(args: argparse.Namespace, services: Services) -> int:
    """Handle `justsend sent ...`."""
    history = services.history()

    if args.sent_command == "list":
        await history.refresh(search=args.search)
        if not history.emails:
            print("No sent emails")
            return 0
        for day, emails in history.emails_by_date():
            print(f"{day:%Y-%m-%d}")
            for email in emails:
                clip = f"  [{email.attachment_count} att]" if email.has_attachments else ""
                print(f"  {email.id[:8]}  {email.sent_at:%H:%M}  "
                      f"{email.recipients_summary:<32} {email.subject}{clip}")
        return 0

    if args.sent_command == "stats":
        await history.refresh(search="")
        print(f"Emails sent:   {history.total_emails_sent}")
        print(f"Attachments:   {history.total_attachments}")
        print(f"Storage used:  {history.storage_used}")
        return 0

    if args.sent_command == "sweep":
        removed = await history.sweep_orphaned_folders()
        print(f"Removed {len(removed)} orphaned attachment folder(s)")
        return 0

    if args.sent_command == "clear":
        if not args.yes:
            answer = input("Delete ALL sent emails and their attachments? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                return 1
        count = await history.delete_all()
        print(f"Deleted {count} sent email(s)")
        return 0

    email = await history.get(args.email_id)
    if email is None:
        print(f"No sent email matches {args.email_id!r}", file=sys.stderr)
        return 1

    if args.sent_command == "show":
        _print_email_detail(email)
        return 0

    if args.sent_command == "delete":
        await history.delete_email(email)
        print(f"Deleted {email.id}")
        return 0

    return 2


# =============================================================================
# CLI Entry Point
# =============================================================================

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="JustSend: send HTML email through Resend from the command line",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--paths",
        action="store_true",
        help="Print configuration paths and exit",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: XDG config location)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (verbose logging)",
    )

    commands = parser.add_subparsers(dest="command")

    # accounts -------------------------------------------------------------
    accounts = commands.add_parser("accounts", help="Manage sender accounts")
    accounts_commands = accounts.add_subparsers(dest="accounts_command", required=True)

    accounts_commands.add_parser("list", help="List sender accounts")

    add = accounts_commands.add_parser("add", help="Add a sender account")
    add.add_argument("name", help="Website name, e.g. 'My Shop'")
    add.add_argument("email", help="From address on a Resend-verified domain")
    add.add_argument("--api-key", help="Resend API key (prompted if omitted)")
    add.add_argument("--signature", help="Plain-text signature (use \\n for new lines)")

    update = accounts_commands.add_parser("update", help="Update a sender account")
    update.add_argument("account", help="Account id, id prefix or email")
    update.add_argument("--name", help="New website name")
    update.add_argument("--email", help="New From address")
    update.add_argument("--api-key", help="Replace the API key")
    update.add_argument("--signature", help="New signature ('' removes it)")

    remove = accounts_commands.add_parser("remove", help="Delete a sender account")
    remove.add_argument("account", help="Account id, id prefix or email")

    default = accounts_commands.add_parser("default", help="Set the default account")
    default.add_argument("account", help="Account id, id prefix or email")

    # send -----------------------------------------------------------------
    send = commands.add_parser("send", help="Send an email")
    send.add_argument("--to", required=True, help="Recipient address")
    send.add_argument("--subject", required=True, help="Subject line")
    body = send.add_mutually_exclusive_group(required=True)
    body.add_argument("--html", help="HTML body")
    body.add_argument("--html-file", type=Path, help="Read the HTML body from a file")
    send.add_argument("--cc", action="append", default=[], help="CC address(es), repeatable")
    send.add_argument("--bcc", action="append", default=[], help="BCC address(es), repeatable")
    send.add_argument("--reply-to", action="append", default=[],
                      help="Reply-To address(es), repeatable")
    send.add_argument("--attach", action="append", default=[], type=Path,
                      help="File to attach, repeatable")
    send.add_argument("--account", help="Sender account (default: the default account)")

    # sent -----------------------------------------------------------------
    sent = commands.add_parser("sent", help="Browse sent email history")
    sent_commands = sent.add_subparsers(dest="sent_command", required=True)

    sent_list = sent_commands.add_parser("list", help="List sent emails")
    sent_list.add_argument("--search", default="", help="Filter by subject, From or To")

    show = sent_commands.add_parser("show", help="Show one sent email")
    show.add_argument("email_id", help="Email id or id prefix")

    delete = sent_commands.add_parser("delete", help="Delete one sent email")
    delete.add_argument("email_id", help="Email id or id prefix")

    clear = sent_commands.add_parser("clear", help="Delete all sent emails")
    clear.add_argument("--yes", action="store_true", help="Don't ask for confirmation")

    sent_commands.add_parser("stats", help="Show history statistics")
    sent_commands.add_parser("sweep", help="Remove attachment folders with no record")

    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    """Configure root logging for the CLI."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO; only interesting when debugging
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


async def run(args: argparse.Namespace, config: Config) -> int:
    """Run the selected subcommand."""
    handlers = {
        "accounts": cmd_accounts,
        "send": cmd_send,
        "sent": cmd_sent,
    }
    async with open_services(config) as services:
        return await handlers[args.command](args, services)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for JustSend.

    This function:
        1. Parses command-line arguments
        2. Handles special commands (--paths, --version)
        3. Loads configuration
        4. Runs the subcommand

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_args(argv)
    setup_logging(args.debug)

    # Load configuration
    try:
        config = Config.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    logger.debug(f"Config loaded from {args.config or Config.config_file_path()}")

    # Handle --paths flag
    if args.paths:
        print_paths(config)
        return 0

    if args.command is None:
        parse_args(["--help"])
        return 0

    try:
        return asyncio.run(run(args, config))
    except AccountError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyringError as e:
        print(f"Error: could not use the system keyring: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
