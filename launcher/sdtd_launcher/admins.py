from __future__ import annotations
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional
from .errors import AdminSyncError
from .logging_setup import get_logger
from . import xmldoc

log = get_logger("sdtd.launcher.admins")

PLATFORM = "Steam"
PERMISSION_LEVEL = "0"

@dataclass
class AdminReport:
    path: Path
    skipped: bool = False
    written: bool = False
    added: List[str] = field(default_factory=list)
    existing: List[str] = field(default_factory=list)

def _unique(ids: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for i in ids:
        if i and i not in seen:
            seen.add(i)
            out.append(i)
    return out

def _users_element(root: ET.Element) -> Optional[ET.Element]:
    if root.tag == "users":
        return root
    return root.find(".//users")

def count_admins(users: ET.Element, user_id: str) -> int:
    return sum(
        1 for u in users.findall("user")
        if u.get("platform") == PLATFORM and u.get("userid") == user_id
    )

def _append_user(users: ET.Element, user_id: str) -> None:
    el = ET.Element("user", {"platform": PLATFORM, "userid": user_id, "permission_level": PERMISSION_LEVEL})
    # keep the indentation of the existing children
    if len(users):
        last = users[-1]
        el.tail = last.tail
        last.tail = users.text
    else:
        el.tail = users.text
    users.append(el)

class AdminListSync:
    def __init__(self, path: Path):
        self.path = path

    def sync(self, admin_ids: Iterable[str], *, dry_run: bool = False) -> AdminReport:
        report = AdminReport(path=self.path)
        if not self.path.is_file():
            log.warning("WARNING: serveradmin.xml not found at %s", self.path)
            log.warning("The server must be started at least once to create this file")
            report.skipped = True
            return report

        ids = _unique(admin_ids)
        if not ids:
            log.info("No admin Steam IDs configured (ADMIN_STEAM_IDS is empty)")
            return report

        try:
            tree = xmldoc.parse(self.path)
        except (OSError, ET.ParseError) as e:
            raise AdminSyncError(f"Cannot read {self.path}: {e}") from e
        users = _users_element(tree.getroot())
        if users is None:
            raise AdminSyncError(f"{self.path.name}: no <users> element")

        log.info("Adding admin users to serveradmin.xml...")
        for user_id in ids:
            if count_admins(users, user_id) > 0:
                log.info("  Admin already exists: %s", user_id)
                report.existing.append(user_id)
                continue
            log.info("  %s admin: %s", "Would add" if dry_run else "Adding", user_id)
            _append_user(users, user_id)
            report.added.append(user_id)

        if report.added and not dry_run:
            try:
                xmldoc.write_atomic(tree, self.path)
            except OSError as e:
                raise AdminSyncError(f"Cannot write {self.path}: {e}") from e
            report.written = True
        return report
