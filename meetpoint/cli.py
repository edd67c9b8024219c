"""MeetPoint terminal client"""

import argparse
import sys
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from .api.client import MeetPointClient
from .api.token_store import FileTokenStore
from .models.user import AccountKind
from .services.session_manager import SessionManager
from .utils.config import ConfigManager
from .utils.exceptions import ApiError, MeetPointError
from .utils.logger import setup_logger

console = Console()


def build_session(config_manager: Optional[ConfigManager] = None) -> SessionManager:
    """Wire settings, token storage, API client and session together"""
    settings = (config_manager or ConfigManager()).load_settings()
    setup_logger(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        file_path=settings.logging.file_path,
        max_bytes=settings.logging.max_bytes,
        backup_count=settings.logging.backup_count,
    )
    store = FileTokenStore(settings.storage.token_file)
    return SessionManager(MeetPointClient.from_settings(settings, token_store=store))


def _stars(score: float) -> str:
    full = max(0, min(5, int(round(score))))
    return "★" * full + "☆" * (5 - full)


def cmd_login(session: SessionManager, args) -> int:
    password = args.password or Prompt.ask("Senha", password=True)
    try:
        user = session.login(args.email, password, args.kind)
    except MeetPointError:
        console.print(f"[bold red]✗ {session.last_error}[/bold red]")
        return 1
    console.print(f"[bold green]✓ Bem-vindo, {user.name or user.email}[/bold green]")
    return 0


def cmd_logout(session: SessionManager, args) -> int:
    session.logout()
    console.print("[bold]Sessão encerrada.[/bold]")
    return 0


def cmd_whoami(session: SessionManager, args) -> int:
    # Only the token is persisted; the profile is not recovered across runs
    if session.has_stored_credential:
        console.print("Token salvo (não verificado com o servidor).")
    else:
        console.print("Nenhuma sessão salva.")
    return 0


def cmd_establishments(session: SessionManager, args) -> int:
    establishments = session.call(
        session.api.get_estabelecimentos,
        search=args.search,
        tipo=args.tipo,
        page=args.page,
        limit=args.limit,
    )
    table = Table(title="Estabelecimentos", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Nome", style="bold")
    table.add_column("Categoria")
    table.add_column("Endereço")
    table.add_column("Nota", justify="right")
    for est in establishments:
        table.add_row(
            est.id,
            est.name,
            est.category,
            est.address,
            f"{_stars(est.average_rating)} {est.average_rating:.1f} ({est.num_ratings})",
        )
    console.print(table)
    return 0


def cmd_ratings(session: SessionManager, args) -> int:
    ratings = session.call(session.api.get_avaliacoes_by_estabelecimento, args.establishment_id)
    table = Table(title="Avaliações", box=box.ROUNDED)
    table.add_column("Data", style="dim")
    table.add_column("Nota")
    table.add_column("Comentário")
    for rating in ratings:
        table.add_row(rating.date, _stars(rating.rating), rating.comment)
    console.print(table)
    return 0


def cmd_categories(session: SessionManager, args) -> int:
    table = Table(title="Categorias", box=box.SIMPLE)
    table.add_column("ID", justify="right")
    table.add_column("Nome")
    for category in session.call(session.api.get_tipos):
        table.add_row(str(category.id), category.name)
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meetpoint", description="MeetPoint terminal client")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Log in and store the token")
    login.add_argument("email")
    login.add_argument("--password")
    login.add_argument(
        "--kind",
        choices=[k.value for k in AccountKind],
        default=AccountKind.CUSTOMER.value,
    )
    login.set_defaults(func=cmd_login)

    sub.add_parser("logout", help="Forget the stored token").set_defaults(func=cmd_logout)
    sub.add_parser("whoami", help="Show whether a token is stored").set_defaults(func=cmd_whoami)

    est = sub.add_parser("establishments", help="List establishments")
    est.add_argument("--search")
    est.add_argument("--tipo")
    est.add_argument("--page", type=int)
    est.add_argument("--limit", type=int)
    est.set_defaults(func=cmd_establishments)

    ratings = sub.add_parser("ratings", help="List ratings of an establishment")
    ratings.add_argument("establishment_id")
    ratings.set_defaults(func=cmd_ratings)

    sub.add_parser("categories", help="List establishment categories").set_defaults(func=cmd_categories)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        session = build_session()
        return args.func(session, args)
    except ApiError as e:
        console.print(f"[bold red]✗ {e.message}[/bold red]")
        return 1
    except MeetPointError as e:
        console.print(f"[bold red]✗ {e}[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
