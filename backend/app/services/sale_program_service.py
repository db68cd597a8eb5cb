"""
Sale program service.

Owns both sides of the program <-> discount association:
- SaleProgram.discounts, the ordered forward list of discount ids
- Discount.program_id, the back-reference to the owning program

Every write to either side goes through this module so the pair stays
symmetric at every commit: a discount with program_id = p is listed in
p.discounts, and every id in p.discounts names a discount whose
program_id = p.id.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.db_transaction import db_transaction, safe_commit
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.core.validators import validate_date_window
from app.models.discount import Discount
from app.models.sale_program import SaleProgram

logger = get_logger("sale_program_service")

_PROGRAM_FIELDS = ("name", "description", "start_date", "end_date", "banner_image", "is_active")


@dataclass
class ReconcileResult:
    program_id: int
    removed: Set[int] = field(default_factory=set)
    added: Set[int] = field(default_factory=set)


@dataclass
class DeactivationResult:
    program_id: int
    deactivated: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)


def diff_discount_ids(old_ids: Iterable[int], new_ids: Iterable[int]) -> Tuple[Set[int], Set[int]]:
    """Return (removed, added) between two discount id collections. Order and duplicates are ignored."""
    old_set, new_set = set(old_ids), set(new_ids)
    return old_set - new_set, new_set - old_set


def _get_program_for_update(db: Session, program_id: int) -> SaleProgram:
    program = (
        db.query(SaleProgram)
        .filter(SaleProgram.id == program_id)
        .with_for_update()
        .first()
    )
    if program is None:
        raise NotFoundError("Sale program", program_id)
    return program


def reconcile(db: Session, program: SaleProgram, old_ids: Iterable[int], new_ids: Iterable[int]) -> ReconcileResult:
    """
    Bring Discount.program_id in line with a program's new discount list.

    Must run inside the caller's transaction, after the program's forward list
    has been set to new_ids. Removed discounts are detached, added ones are
    attached. An added discount that still belongs to another program is
    pulled out of that program's list first. Unknown discount ids raise
    ValidationError so the caller's transaction rolls back.
    """
    removed, added = diff_discount_ids(old_ids, new_ids)
    result = ReconcileResult(program_id=program.id, removed=removed, added=added)
    if not removed and not added:
        return result

    if added:
        rows = db.query(Discount.id, Discount.program_id).filter(Discount.id.in_(sorted(added))).all()
        found = {row.id: row.program_id for row in rows}
        missing = sorted(added - set(found))
        if missing:
            raise ValidationError(f"Unknown discount ids: {missing}", detail=missing)

        # Discounts moving over from another program
        previous_owners: Dict[int, Set[int]] = {}
        for discount_id, owner_id in found.items():
            if owner_id is not None and owner_id != program.id:
                previous_owners.setdefault(owner_id, set()).add(discount_id)
        for owner_id, moved in previous_owners.items():
            owner = _get_program_for_update(db, owner_id)
            owner.discounts = [d for d in owner.discounts if d not in moved]
            logger.info(
                f"Moved discounts {sorted(moved)} from program {owner_id} to program {program.id}"
            )

        db.query(Discount).filter(Discount.id.in_(sorted(added))).update(
            {Discount.program_id: program.id}, synchronize_session=False
        )

    if removed:
        # Only detach rows still pointing at this program
        db.query(Discount).filter(
            Discount.id.in_(sorted(removed)),
            Discount.program_id == program.id,
        ).update({Discount.program_id: None}, synchronize_session=False)

    logger.info(
        f"Reconciled program {program.id}: detached={sorted(removed)} attached={sorted(added)}"
    )
    return result


def create_program(db: Session, data: dict, discount_ids: List[int], created_by: Optional[int] = None) -> SaleProgram:
    """Insert a program with its initial discount list and attach those discounts, atomically."""
    validate_date_window(data.get("start_date"), data.get("end_date"))

    with db_transaction(db):
        existing = db.query(SaleProgram.id).filter(SaleProgram.name == data["name"]).first()
        if existing:
            raise ValidationError("Sale program name already exists", detail=data["name"])

        program = SaleProgram(
            **{k: v for k, v in data.items() if k in _PROGRAM_FIELDS},
            discounts=list(discount_ids),
            created_by=created_by,
        )
        db.add(program)
        db.flush()
        reconcile(db, program, [], discount_ids)

    db.refresh(program)
    logger.info(f"Created sale program {program.id} '{program.name}' with discounts={program.discounts}")
    return program


def update_program(
    db: Session,
    program_id: int,
    data: dict,
    discount_ids: Optional[List[int]] = None,
) -> Tuple[SaleProgram, ReconcileResult]:
    """
    Update a program's fields and discount list in one transaction.

    discount_ids=None keeps the current list. The program row is read under a
    row lock where the backend supports one, and the row's version column is
    checked on flush: if another session committed a change to the program
    after it was read, the flush raises before any discount is touched and
    the whole update rolls back as StorageError. Conflicts are not retried.
    """
    with db_transaction(db):
        program = _get_program_for_update(db, program_id)
        old_ids = list(program.discounts or [])
        new_ids = old_ids if discount_ids is None else list(discount_ids)

        updates = {k: v for k, v in data.items() if k in _PROGRAM_FIELDS}
        if "name" in updates and updates["name"] != program.name:
            clash = db.query(SaleProgram.id).filter(
                SaleProgram.name == updates["name"], SaleProgram.id != program.id
            ).first()
            if clash:
                raise ValidationError("Sale program name already exists", detail=updates["name"])
        validate_date_window(
            updates.get("start_date", program.start_date),
            updates.get("end_date", program.end_date),
        )

        for key, value in updates.items():
            setattr(program, key, value)
        if discount_ids is not None:
            program.discounts = new_ids
        db.flush()

        result = reconcile(db, program, old_ids, new_ids)

    db.refresh(program)
    return program, result


def _find_discount(db: Session, discount_id: int) -> Optional[Discount]:
    return db.query(Discount).filter(Discount.id == discount_id).first()


def deactivate_program(db: Session, program_id: int) -> DeactivationResult:
    """
    Soft-delete a program and cascade is_active=False to its listed discounts.

    The program flag is committed first; each discount is then deactivated on
    its own so one bad row does not block the rest. Discounts that are missing,
    fail to load or fail to save are reported in the result.
    """
    with db_transaction(db):
        program = _get_program_for_update(db, program_id)
        program.is_active = False
        discount_ids = list(dict.fromkeys(program.discounts or []))

    result = DeactivationResult(program_id=program_id)
    for discount_id in discount_ids:
        try:
            discount = _find_discount(db, discount_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Deactivate program {program_id}: lookup of discount {discount_id} failed: {e}")
            result.failed.append(discount_id)
            continue
        if discount is None:
            logger.warning(f"Deactivate program {program_id}: discount {discount_id} not found")
            result.failed.append(discount_id)
            continue
        discount.is_active = False
        if safe_commit(db, f"deactivate discount {discount_id}"):
            result.deactivated.append(discount_id)
        else:
            result.failed.append(discount_id)

    logger.info(
        f"Deactivated sale program {program_id}: discounts={result.deactivated} failed={result.failed}"
    )
    return result


def _discounts_by_id(db: Session, ids: Iterable[int]) -> Dict[int, Discount]:
    ids = set(ids)
    if not ids:
        return {}
    return {d.id: d for d in db.query(Discount).filter(Discount.id.in_(sorted(ids))).all()}


def get_program_with_discounts(db: Session, program_id: int) -> Tuple[SaleProgram, List[Discount]]:
    """Return the program and its discounts resolved in list order."""
    program = db.query(SaleProgram).filter(SaleProgram.id == program_id).first()
    if program is None:
        raise NotFoundError("Sale program", program_id)
    lookup = _discounts_by_id(db, program.discounts or [])
    return program, [lookup[d] for d in program.discounts or [] if d in lookup]


def list_programs(db: Session) -> List[Tuple[SaleProgram, List[Discount]]]:
    """
    Every program, newest first, with discounts resolved.

    No active-flag or date-window filter: the admin console needs to see
    inactive and expired programs too.
    """
    programs = db.query(SaleProgram).order_by(SaleProgram.created_at.desc(), SaleProgram.id.desc()).all()
    lookup = _discounts_by_id(db, (d for p in programs for d in (p.discounts or [])))
    return [
        (p, [lookup[d] for d in p.discounts or [] if d in lookup])
        for p in programs
    ]
