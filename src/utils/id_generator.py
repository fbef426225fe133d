"""Sequential human-readable identifiers.

Staff ids (``LEC-00001``, ``STU-00001``) and assignment codes (``ASS-001``)
are issued from rows of the ``id_counters`` table. Each call increments the
row inside the caller's transaction, so two concurrent writers never read the
same "last id": the second one blocks on the row until the first commits.
"""

import logging
import re
from typing import Callable, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.assignment import AssignmentModel
from models.id_counter import IdCounterModel
from models.user import UserModel
from schemas.user import Role

logger = logging.getLogger(__name__)

STAFF_ID_PREFIXES = {
    Role.LECTURER: "LEC",
    Role.STUDENT: "STU",
}
STAFF_ID_WIDTH = 5

ASSIGNMENT_CODE_PREFIX = "ASS"
ASSIGNMENT_CODE_WIDTH = 3


def parse_suffix(identifier: Optional[str], prefix: str) -> Optional[int]:
    """Return the numeric suffix of ``PREFIX-000123``, or None."""
    if not identifier:
        return None
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", identifier)
    if match is None:
        return None
    return int(match.group(1))


def highest_suffix(identifiers: Iterable[Optional[str]], prefix: str) -> int:
    suffixes = [parse_suffix(i, prefix) for i in identifiers]
    return max((s for s in suffixes if s is not None), default=0)


def format_id(prefix: str, value: int, width: int) -> str:
    return f"{prefix}-{str(value).zfill(width)}"


class IdGenerator:
    """Issues sequential identifiers from transactional counters.

    The counter is not committed here; it becomes durable together with the
    row that uses the issued identifier.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, name: str, seed: Optional[Callable[[], int]] = None) -> int:
        """Increment and return counter ``name``.

        Args:
            name: Counter name, e.g. "STU".
            seed: Returns the last value already in use, called only when the
                counter row does not exist yet.

        Returns:
            The newly issued value.
        """
        result = self.db.execute(
            update(IdCounterModel)
            .where(IdCounterModel.name == name)
            .values(value=IdCounterModel.value + 1)
        )
        if result.rowcount:
            return self.db.execute(
                select(IdCounterModel.value).where(IdCounterModel.name == name)
            ).scalar_one()

        start = seed() if seed else 0
        self.db.add(IdCounterModel(name=name, value=start + 1))
        self.db.flush()
        logger.info("Seeded id counter %s at %d", name, start)
        return start + 1

    def next_staff_id(self, role: Role) -> str:
        """Issue the next staff id for a lecturer or student."""
        prefix = STAFF_ID_PREFIXES[role]

        def seed() -> int:
            rows = self.db.query(UserModel.staff_id).filter(UserModel.role == role.value).all()
            return highest_suffix((r[0] for r in rows), prefix)

        return format_id(prefix, self.next_value(prefix, seed), STAFF_ID_WIDTH)

    def next_assignment_code(self) -> str:
        """Issue the next assignment code."""

        def seed() -> int:
            rows = (
                self.db.query(AssignmentModel.assignment_code)
                .filter(AssignmentModel.assignment_code.isnot(None))
                .all()
            )
            return highest_suffix((r[0] for r in rows), ASSIGNMENT_CODE_PREFIX)

        value = self.next_value(ASSIGNMENT_CODE_PREFIX, seed)
        return format_id(ASSIGNMENT_CODE_PREFIX, value, ASSIGNMENT_CODE_WIDTH)
