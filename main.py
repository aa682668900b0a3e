from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
import sys

from loguru import logger

from app.viewmodels.main_vm import MainVM
from app.viewmodels.scanner_vm import ScannerVM
from app.viewmodels.stamp_vm import StampVM
from core.errors import AnalysisError, PhilatelyError
from core.models import EXPERT_STATUSES, StampRecord
from core.services.appraisal_service import AppraisalService
from core.services.collection_store import CollectionStore
from core.services.filter_service import ALL_ALBUMS, ALL_STATUSES
from core.services.sort_service import SORT_FIELDS
from infrastructure.gemini_client import GeminiStampAnalyzer
from infrastructure.json_repository import JsonCollectionRepository
from infrastructure.logging import find_latest_log_file, init_logging
from infrastructure.settings import DEFAULT_HOME, JsonSettings

BASE_DIR = Path(__file__).parent
# Per-user file first, then the copy next to a source checkout
SETTINGS_SEARCH_PATHS = (DEFAULT_HOME / "settings.json", BASE_DIR / "settings.json")


def load_settings(explicit: str | None) -> JsonSettings:
    """Load `explicit` or the first existing search path; built-in defaults otherwise.

    Raises:
        FileNotFoundError: If `explicit` is given and does not exist.
    """
    if explicit:
        return JsonSettings(explicit)
    for candidate in SETTINGS_SEARCH_PATHS:
        if candidate.exists():
            return JsonSettings(candidate)
    return JsonSettings()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="philately-ai", description="Stamp collection archive")
    parser.add_argument(
        "--settings", help="settings.json to use (default: first of SETTINGS_SEARCH_PATHS)"
    )
    parser.add_argument("-y", "--yes", action="store_true", help="skip confirmation prompts")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("scan", help="analyze a photograph and save it")
    p.add_argument("image")
    p.add_argument("--album")
    p.add_argument("--keywords")
    p.add_argument("--no-deep", action="store_true", help="skip the technical deep analysis")

    p = sub.add_parser("list", help="list the collection")
    p.add_argument("--search", default="")
    p.add_argument("--album", default=ALL_ALBUMS)
    p.add_argument("--status", default=ALL_STATUSES, choices=(ALL_STATUSES, *EXPERT_STATUSES))
    p.add_argument("--sort", choices=SORT_FIELDS)
    p.add_argument("--asc", action="store_true")

    p = sub.add_parser("show", help="show one record")
    p.add_argument("id")

    p = sub.add_parser("refresh", help="re-analyze a stored record")
    p.add_argument("id")
    p.add_argument("--keywords")
    p.add_argument("--deep", action="store_true")

    p = sub.add_parser("request", help="request an expert appraisal")
    p.add_argument("id")

    p = sub.add_parser("appraise", help="submit an expert appraisal")
    p.add_argument("id")
    p.add_argument("--value", default="")
    p.add_argument("--note", default="")

    p = sub.add_parser("reject", help="reject a pending appraisal request")
    p.add_argument("id")

    p = sub.add_parser("delete", help="delete a record")
    p.add_argument("id")

    sub.add_parser("albums", help="list albums")
    p = sub.add_parser("add-album", help="create an album")
    p.add_argument("name")

    p = sub.add_parser("compare", help="compare records side by side")
    p.add_argument("ids", nargs="+")

    sub.add_parser("stats", help="dashboard figures")

    p = sub.add_parser("export", help="write a JSON backup")
    p.add_argument("--out")

    sub.add_parser("logs", help="print the path of the latest log file")
    return parser


def _confirm(question: str, assume_yes: bool):
    def ask(record: StampRecord) -> bool:
        if assume_yes:
            return True
        answer = input(question.format(name=record.name) + " [y/N] ")
        return answer.strip().lower() in {"y", "j", "yes", "ja"}

    return ask


def _print_record(rec: StampRecord) -> None:
    vm = StampVM(rec)
    print(f"{rec.id}  {rec.name}")
    print(f"  Herkunft: {rec.origin} ({rec.year})  Album: {rec.album}")
    print(f"  Wert: {vm.display_value}  Seltenheit: {rec.rarity}  Status: {rec.expert_status}")
    fields = vm.condition_fields
    if fields:
        for f in fields:
            print(f"  {f.label}: {f.value}")
    else:
        print(f"  Zustand: {rec.condition}")
    if rec.expert_note:
        print(f"  Experten-Note: {rec.expert_note}")
    for label, value in (
        ("Druckverfahren", rec.printing_method),
        ("Papiersorte", rec.paper_type),
        ("Stempelform", rec.cancellation_type),
    ):
        if value:
            print(f"  {label}: {value}")
    for para in vm.paragraphs(rec.description):
        print(f"  {para}")
    for para in vm.paragraphs(rec.historical_context):
        print(f"  {para}")


def _print_analysis_error(ex: AnalysisError) -> None:
    print(f"Fehler bei der KI-Analyse ({ex.category}): {ex.message}", file=sys.stderr)
    for hint in ex.hints:
        print(f"  - {hint}", file=sys.stderr)


def _analyzer(settings: JsonSettings) -> GeminiStampAnalyzer:
    api_key = settings.api_key()
    if not api_key:
        raise SystemExit("No Gemini API key found (set GEMINI_API_KEY)")
    return GeminiStampAnalyzer(
        api_key=api_key, model=settings.ai_model, temperature=settings.ai_temperature
    )


# pylint: disable-next=too-many-branches,too-many-statements,too-many-return-statements
def run(args: argparse.Namespace, settings: JsonSettings) -> int:
    repo = JsonCollectionRepository(
        settings.storage_dir, settings.collection_key, settings.albums_key
    )
    store = CollectionStore(repo, default_albums=settings.default_albums)
    needs_ai = args.command in {"scan", "refresh"}
    analyzer = _analyzer(settings) if needs_ai else None
    vm = MainVM(store, analyzer, default_sort=settings.default_sort)

    if args.command == "scan":
        scanner = ScannerVM(store, analyzer)
        scanner.load_image(args.image)
        asyncio.run(scanner.analyze(args.keywords, deep_analysis=not args.no_deep))
        if scanner.error is not None:
            _print_analysis_error(scanner.error)
            return 1
        if args.album:
            store.add_album(args.album)
        _print_record(scanner.save(args.album))
    elif args.command == "list":
        vm.filter.search = args.search
        vm.filter.album = args.album
        vm.filter.expert_status = args.status
        if args.sort:
            vm.set_sort(args.sort, args.asc)
        for rec in vm.visible_records():
            print(f"{rec.id}  {StampVM(rec).display_value:>14}  {rec.year:>6}  {rec.name}")
        counts = vm.status_counts()
        print("  ".join(f"{k}: {v}" for k, v in counts.items()))
    elif args.command == "show":
        _print_record(store.get(args.id))
    elif args.command == "refresh":
        try:
            rec = asyncio.run(vm.refresh_analysis(args.id, args.keywords, args.deep))
        except AnalysisError as ex:
            _print_analysis_error(ex)
            return 1
        _print_record(rec)
    elif args.command == "request":
        _print_record(AppraisalService(store).request(args.id))
    elif args.command == "appraise":
        _print_record(AppraisalService(store).submit(args.id, args.value, args.note))
    elif args.command == "reject":
        ask = _confirm('Möchten Sie die Anfrage für "{name}" wirklich ablehnen?', args.yes)
        rec = AppraisalService(store).reject(args.id, ask)
        if rec is None:
            return 1
        _print_record(rec)
    elif args.command == "delete":
        ask = _confirm("Marke unwiderruflich aus der Sammlung löschen?", args.yes)
        return 0 if vm.delete(args.id, ask) else 1
    elif args.command == "albums":
        for name in vm.albums:
            print(name)
    elif args.command == "add-album":
        if not vm.add_album(args.name):
            print(f"Album existiert bereits oder ist leer: {args.name!r}", file=sys.stderr)
            return 1
    elif args.command == "compare":
        for record_id in args.ids:
            vm.compare.toggle(record_id)
        diverse = vm.diverse_fields()
        for rec in vm.compared_records():
            _print_record(rec)
        print("Unterschiede: " + ", ".join(k for k, v in diverse.items() if v))
    elif args.command == "stats":
        stats = vm.stats()
        print(f"Archivierte Marken: {stats.record_count}")
        print(f"Gesamtwert: {stats.total_value_text}")
        print(f"Experten-Status: {stats.appraised_count}")
        for share in stats.top_origins:
            print(f"  {share.name}: {share.percent:.0f}%")
    elif args.command == "export":
        print(vm.export(args.out or settings.export_dir))
    elif args.command == "logs":
        latest = find_latest_log_file(settings.log_dir)
        if latest is None:
            return 1
        print(latest)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = load_settings(args.settings)
    except (FileNotFoundError, ValueError) as ex:
        print(f"Einstellungen nicht lesbar: {ex}", file=sys.stderr)
        return 1
    init_logging(settings.log_dir)
    logger.info("Settings: {}", settings.path or "built-in defaults")
    try:
        return run(args, settings)
    except PhilatelyError as ex:
        logger.error("{} failed: {}", args.command, ex)
        print(ex.message, file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
