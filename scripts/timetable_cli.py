# KuliahBot - Course Schedule Assistant for Discord
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Timetable CLI - Inspect and edit kuliah.json from the shell

The chat commands only manage assignments; the weekly timetable is
maintained here (or by hand-editing the JSON file).

Usage:
    # Show the whole week
    python scripts/timetable_cli.py show

    # Show one day
    python scripts/timetable_cli.py show --day senin

    # Add a class
    python scripts/timetable_cli.py add-slot --day senin --matkul "Algoritma" --jam 09:00 --info "R. 301"

    # Remove the second class on Monday
    python scripts/timetable_cli.py remove-slot --day senin --index 2

    # Assignments
    python scripts/timetable_cli.py tugas
    python scripts/timetable_cli.py remove-tugas --id T1

Set KULIAH_DATA_PATH or pass --data to point at a different file.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kuliah.models import WEEKDAYS, ClassSlot, KuliahData, parse_clock
from kuliah.store import KuliahStore, StorageError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def show_schedule(data: KuliahData, day: str = None):
    """Print the timetable for one day or the whole week."""
    days = [day] if day else list(WEEKDAYS)
    total = 0
    for name in days:
        slots = data.slots_for(name)
        if not slots and not day:
            continue
        logger.info(f"{name}:")
        if not slots:
            logger.info("    (kosong)")
        for index, slot in enumerate(slots, start=1):
            logger.info(f"    {index}. {slot.time}  {slot.course}  - {slot.note}")
        total += len(slots)

    # Days that are not one of the seven known names never fire reminders
    unknown = sorted(set(data.jadwal) - set(WEEKDAYS))
    if unknown and not day:
        logger.warning(f"Unknown day keys (ignored by the bot): {', '.join(unknown)}")

    logger.info(f"\n{total} class(es)")


def show_assignments(data: KuliahData):
    if not data.tugas:
        logger.info("No assignments.")
        return
    for assignment in data.tugas:
        logger.info(f"[{assignment.id}] {assignment.title} ({assignment.course}) due {assignment.due}")
    logger.info(f"\n{len(data.tugas)} assignment(s)")


def main():
    parser = argparse.ArgumentParser(
        description="Timetable CLI - Inspect and edit the KuliahBot course document"
    )
    parser.add_argument(
        "--data",
        default=os.getenv("KULIAH_DATA_PATH", "kuliah.json"),
        help="Path to kuliah.json (default: $KULIAH_DATA_PATH or ./kuliah.json)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    show_parser = subparsers.add_parser("show", help="Show the timetable")
    show_parser.add_argument("--day", choices=WEEKDAYS, help="Only this day")

    add_parser = subparsers.add_parser("add-slot", help="Add a class to a day")
    add_parser.add_argument("--day", choices=WEEKDAYS, required=True)
    add_parser.add_argument("--matkul", required=True, help="Course name")
    add_parser.add_argument("--jam", required=True, help="Start time, HH:MM (24-hour)")
    add_parser.add_argument("--info", default="", help="Room or other note")

    remove_parser = subparsers.add_parser("remove-slot", help="Remove a class from a day")
    remove_parser.add_argument("--day", choices=WEEKDAYS, required=True)
    remove_parser.add_argument(
        "--index", type=int, required=True, help="1-based position as shown by 'show'"
    )

    subparsers.add_parser("tugas", help="List assignments")

    remove_tugas_parser = subparsers.add_parser("remove-tugas", help="Remove assignments by ID")
    remove_tugas_parser.add_argument("--id", required=True, dest="assignment_id")

    args = parser.parse_args()
    store = KuliahStore(args.data)

    try:
        data = store.load()

        if args.command == "show":
            show_schedule(data, args.day)
        elif args.command == "tugas":
            show_assignments(data)
        elif args.command == "add-slot":
            if parse_clock(args.jam) is None:
                logger.error(f"Invalid time '{args.jam}', expected HH:MM")
                sys.exit(1)
            data.add_slot(args.day, ClassSlot(course=args.matkul, time=args.jam, note=args.info))
            store.save(data)
            logger.info(f"Added {args.matkul} ({args.jam}) on {args.day}")
        elif args.command == "remove-slot":
            removed = data.remove_slot(args.day, args.index - 1)
            if removed is None:
                logger.error(f"No class #{args.index} on {args.day}")
                sys.exit(1)
            store.save(data)
            logger.info(f"Removed {removed.course} ({removed.time}) from {args.day}")
        elif args.command == "remove-tugas":
            count = data.remove_assignment(args.assignment_id)
            store.save(data)
            logger.info(f"Removed {count} assignment(s) with id {args.assignment_id}")
    except StorageError as e:
        logger.error(f"Storage error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
