"""Point d'entrée CLI ``shopify-tickets``.

FR: Actions d'administration du reporting (génération, envoi, renvoi des
    échecs) et exécution du planificateur jusqu'à SIGTERM/SIGINT. Les signaux
    suppriment les déclenchements futurs sans interrompre une exécution en
    cours.
EN: Reporting admin actions and a scheduler runner stopped by SIGTERM/SIGINT.
"""

import argparse
import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from shopify_tickets.config import Settings
from shopify_tickets.modules import Modules, build_modules
from shopify_tickets.reports.errors import ReportError
from shopify_tickets.reports.sender import SendReportResult
from shopify_tickets.store.errors import StoreError

logger = logging.getLogger(__name__)


def _month(value: str) -> int:
    month = int(value)
    if not 1 <= month <= 12:
        msg = f"mois invalide : {value}"
        raise argparse.ArgumentTypeError(msg)
    return month


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shopify-tickets",
        description="Reporting comptable mensuel des tickets Shopify",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="journalisation détaillée")
    commands = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("generate", "génère (ou régénère) le rapport d'un mois"),
        ("send", "envoie le rapport d'un mois à l'ERP"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("year", type=int)
        command.add_argument("month", type=_month)

    commands.add_parser("retry", help="renvoie les rapports en échec")
    commands.add_parser("scheduler", help="exécute les tâches planifiées jusqu'à l'arrêt")
    return parser


def _print_result(result: SendReportResult) -> None:
    print(result.model_dump_json())


async def _run_scheduler(modules: Modules) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, stop.set)
    logger.info("Planificateur démarré")
    await modules.reporting.run_scheduler(stop)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    modules = build_modules(settings)
    reporting = modules.reporting
    try:
        match args.command:
            case "generate":
                report = await reporting.generate_monthly_report(args.year, args.month)
                print(report.model_dump_json(by_alias=True))
                return 0
            case "send":
                result = await reporting.send_report(args.year, args.month)
                _print_result(result)
                return 0 if result.success else 1
            case "retry":
                results = await reporting.retry_failed_reports()
                for result in results:
                    _print_result(result)
                return 0 if all(result.success for result in results) else 1
            case "scheduler":
                await _run_scheduler(modules)
                return 0
            case _:
                msg = f"Commande inconnue : {args.command}"
                raise ValueError(msg)
    finally:
        await modules.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s : %(message)s",
    )
    try:
        settings = Settings.from_env()
    except ValidationError as exc:
        print(f"Configuration invalide :\n{exc}", file=sys.stderr)
        return 2

    try:
        return asyncio.run(run(args, settings))
    except (ReportError, StoreError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
