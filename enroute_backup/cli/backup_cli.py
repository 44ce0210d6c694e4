"""Command-line entry point for EnRoute Backup.

Usage:
    enroute-backup
    enroute-backup --config config/config.json --root D:\\ --root E:\\
    enroute-backup --all-drives --list
    enroute-backup --select A --mode 1
    enroute-backup --select 0 --mode 2 --dry-run
"""

import argparse
import logging
import os
from datetime import datetime

from enroute_backup.archive.archiver import (
    ALL_LABEL,
    ArchiveError,
    archive_name,
    create_archive,
)
from enroute_backup.archive.staging import StagingArea, free_space_shortfall
from enroute_backup.backup.backup_config import TIMESTAMP_FORMAT, load_config
from enroute_backup.backup.backup_orchestrator import BackupOrchestrator, BackupReport
from enroute_backup.backup.progress_tracker import format_duration
from enroute_backup.cli.menu import (
    InvalidSelectionError,
    format_installation_menu,
    format_mode_menu,
    parse_installation_choice,
    parse_mode_choice,
    prompt,
)
from enroute_backup.discovery.installation_scanner import (
    find_running_instances,
    mounted_drive_roots,
    scan,
)

logger = logging.getLogger("enroute_backup")

EXIT_OK = 0
EXIT_NO_INSTALLATIONS = 1
EXIT_INVALID_SELECTION = 2
EXIT_ARCHIVE_FAILED = 3
EXIT_CONFIG_ERROR = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Back up EnRoute / EzyNest installations to a zip archive",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to config.json (default: config/config.json if present)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--root",
        action="append",
        default=None,
        help="Directory to scan for installations (repeatable)",
    )
    parser.add_argument(
        "--all-drives",
        action="store_true",
        help="Scan every mounted drive",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory the archive is written to",
    )
    parser.add_argument(
        "--select",
        default=None,
        help="Installation index or A for all (skips the prompt)",
    )
    parser.add_argument(
        "--mode",
        default=None,
        help="1 = important files only, 2 = full installation (skips the prompt)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List discovered installations and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan the backup and report counts without copying",
    )
    return parser


def print_progress(snap, task):
    print(f"[{snap.completed}/{snap.total}] {snap.percent:3d}%  "
          f"ETA {format_duration(snap.estimated_remaining)}  {task.destination}")


def print_report(report: BackupReport):
    for inst in report.installations:
        print(f"{inst.folder_name}: {inst.copied}/{inst.planned} file(s) copied"
              f" from {inst.installation.path}")
        for item in inst.missing:
            print(f"  [!] Missing item: {item}")
        for path in inst.unreadable:
            print(f"  [!] Could not read folder: {path}")
        for item in inst.duplicates:
            print(f"  [!] Overwrote same-named file: {item}")
        for failure in inst.failures:
            print(f"  [!] Copy failed: {failure.source} ({failure.error})")
    if report.has_warnings:
        print(f"Completed with warnings: {report.total_failed} copy failure(s).")


def main(argv=None, input_fn=input) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Cannot load configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    if args.output_dir:
        config.output_dir = args.output_dir
    if args.root:
        roots = args.root
    elif args.all_drives or config.scan_all_drives:
        roots = mounted_drive_roots()
    else:
        roots = config.scan_roots

    installations = scan(roots, config.patterns)
    if not installations:
        print(f"No installations found under: {', '.join(roots)}")
        return EXIT_NO_INSTALLATIONS

    print(format_installation_menu(installations))
    if args.list:
        return EXIT_OK

    try:
        answer = args.select if args.select is not None else prompt(
            "Select installation to back up: ", input_fn)
        selected, all_selected = parse_installation_choice(answer, installations)

        if args.mode is None:
            print(format_mode_menu())
        answer = args.mode if args.mode is not None else prompt(
            "Select backup mode: ", input_fn)
        mode = parse_mode_choice(answer)
    except InvalidSelectionError as exc:
        print(f"Backup aborted: {exc}")
        return EXIT_INVALID_SELECTION

    for pid, name in find_running_instances(config.patterns):
        print(f"[!] {name} is running (pid {pid}); open files may fail to copy.")

    orchestrator = BackupOrchestrator(on_progress=print_progress)
    plans = orchestrator.plan_all(selected, mode, config.exclusions, config.manifest)

    if args.dry_run:
        for p in plans:
            print(f"{p.folder_name}: {len(p.result.tasks)} file(s) to copy, "
                  f"{len(p.result.missing)} missing item(s), "
                  f"{p.result.excluded} excluded")
        print(f"Dry run: {orchestrator.progress.total} file(s) would be backed up.")
        return EXIT_OK

    timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
    label = ALL_LABEL if all_selected else selected[0].name
    filename = archive_name(config.archive_prefix, label, timestamp)

    with StagingArea(timestamp, parent=config.staging_parent) as staging_root:
        required = sum(p.result.total_bytes for p in plans)
        shortfall = free_space_shortfall(staging_root, required)
        if shortfall:
            logger.warning("Staging location may be %d bytes short of space", shortfall)

        report = orchestrator.execute(plans, staging_root, mode)
        print_report(report)

        try:
            archive_path = create_archive(staging_root, config.output_dir, filename)
        except ArchiveError as exc:
            logger.error("Archive failed: %s", exc)
            print(f"Backup failed: {exc}")
            return EXIT_ARCHIVE_FAILED

    print(f"Backup complete: {archive_path}")
    return EXIT_OK
