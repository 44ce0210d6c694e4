"""Backup orchestration.

Resolves, plans and copies every selected installation into the staging
tree. All installations are planned before the first file is copied so
the progress total is final while copying runs.
"""

import logging
import os
import shutil
from collections import Counter
from dataclasses import dataclass, field

from enroute_backup.backup.copy_planner import CopyTask, PlanResult, plan
from enroute_backup.backup.item_resolver import BackupMode, resolve
from enroute_backup.backup.progress_tracker import ProgressSnapshot, ProgressTracker
from enroute_backup.discovery.installation_scanner import InstallationPath

logger = logging.getLogger(__name__)


@dataclass
class CopyFailure:
    """A file that could not be copied."""
    source: str
    destination: str
    error: str


@dataclass
class InstallationPlan:
    installation: InstallationPath
    folder_name: str
    items: list[str]
    result: PlanResult


@dataclass
class InstallationReport:
    """Outcome of backing up one installation."""
    installation: InstallationPath
    folder_name: str
    planned: int = 0
    copied: int = 0
    excluded: int = 0
    missing: list[str] = field(default_factory=list)
    unreadable: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    failures: list[CopyFailure] = field(default_factory=list)


@dataclass
class BackupReport:
    mode: BackupMode
    installations: list[InstallationReport] = field(default_factory=list)

    @property
    def total_planned(self) -> int:
        return sum(r.planned for r in self.installations)

    @property
    def total_copied(self) -> int:
        return sum(r.copied for r in self.installations)

    @property
    def total_failed(self) -> int:
        return sum(len(r.failures) for r in self.installations)

    @property
    def has_warnings(self) -> bool:
        return any(r.missing or r.unreadable or r.duplicates or r.failures
                   for r in self.installations)


def assign_folder_names(installations) -> list[str]:
    """Return one staging folder name per installation.

    Names are the installation leaf names; repeated leaf names get a
    numeric suffix (``EnRoute9``, ``EnRoute9_2``).
    """
    seen: Counter = Counter()
    names = []
    for inst in installations:
        seen[inst.name.lower()] += 1
        count = seen[inst.name.lower()]
        if count == 1:
            names.append(inst.name)
        else:
            renamed = f"{inst.name}_{count}"
            logger.warning("Duplicate installation name %s, staging %s as %s",
                           inst.name, inst.path, renamed)
            names.append(renamed)
    return names


class BackupOrchestrator:
    """Copies installations into a staging tree while tracking progress.

    Usage::

        orch = BackupOrchestrator(on_progress=print_progress)
        report = orch.run(installations, BackupMode.CURATED,
                          exclusions, manifest, staging_root)
    """

    def __init__(self, progress: ProgressTracker | None = None, on_progress=None):
        self.progress = progress or ProgressTracker()
        self.on_progress = on_progress

    def plan_all(self, installations, mode: BackupMode, exclusions, manifest) -> list[InstallationPlan]:
        """Resolve and plan every installation; registers planned counts."""
        installations = list(installations)
        plans = []
        for inst, folder in zip(installations, assign_folder_names(installations)):
            items = resolve(inst.path, mode, manifest)
            result = plan(inst.path, items, exclusions)
            self.progress.add_planned(len(result.tasks))
            plans.append(InstallationPlan(
                installation=inst, folder_name=folder, items=items, result=result,
            ))
        return plans

    def execute(self, plans, staging_root: str, mode: BackupMode) -> BackupReport:
        """Copy every planned task into ``staging_root``."""
        report = BackupReport(mode=mode)
        self.progress.start()

        for inst_plan in plans:
            inst_report = InstallationReport(
                installation=inst_plan.installation,
                folder_name=inst_plan.folder_name,
                planned=len(inst_plan.result.tasks),
                excluded=inst_plan.result.excluded,
                missing=list(inst_plan.result.missing),
                unreadable=list(inst_plan.result.unreadable),
                duplicates=list(inst_plan.result.duplicates),
            )
            dest_root = os.path.join(staging_root, inst_plan.folder_name)
            os.makedirs(dest_root, exist_ok=True)
            logger.info("Backing up %s -> %s", inst_plan.installation.path, dest_root)

            for task in inst_plan.result.tasks:
                failure = self._copy(task, dest_root)
                if failure is None:
                    inst_report.copied += 1
                else:
                    inst_report.failures.append(failure)
                snap = self.progress.record_completed()
                self._notify(snap, task)

            report.installations.append(inst_report)
            logger.info("Finished %s: %d/%d copied, %d failed, %d missing",
                        inst_plan.installation.name, inst_report.copied,
                        inst_report.planned, len(inst_report.failures),
                        len(inst_report.missing))
        return report

    def run(self, installations, mode: BackupMode, exclusions, manifest, staging_root: str) -> BackupReport:
        plans = self.plan_all(installations, mode, exclusions, manifest)
        return self.execute(plans, staging_root, mode)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _copy(task: CopyTask, dest_root: str) -> CopyFailure | None:
        dest = os.path.join(dest_root, task.destination)
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copy2(task.source, dest)
        except OSError as exc:
            logger.warning("Failed to copy %s: %s", task.source, exc)
            return CopyFailure(source=task.source, destination=task.destination,
                               error=str(exc))
        return None

    def _notify(self, snap: ProgressSnapshot, task: CopyTask):
        if self.on_progress is None:
            return
        try:
            self.on_progress(snap, task)
        except Exception:
            logger.exception("Progress callback failed for %s", task.source)
