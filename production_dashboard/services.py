"""
Store operations behind the dashboard's forms.

Each function validates its input and the acting user's role before
touching the store, raising ValidationError / PermissionDeniedError /
EntryNotFoundError instead of mutating anything. Successful mutations
are recorded in the activity log.
"""

import logging

import numpy as np

from .config import (
    ACTUAL_ROLES,
    ADMIN_ROLES,
    EDIT_ROLES,
    PLAN_ROLES,
    ROLES,
)
from .dates import is_valid_iso_date, normalise_date, utc_now_iso
from .errors import EntryNotFoundError, PermissionDeniedError, ValidationError
from .models import OffDay, ProductionEntry, User, new_id, safe_int
from .store import RecordStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def has_permission(user: User | None, roles) -> bool:
    return user is not None and user.has_role(roles)


def _require_role(user: User | None, roles, operation: str) -> None:
    if not has_permission(user, roles):
        who = user.username if user else "anonymous"
        logger.warning("Permission denied: %s tried to %s", who, operation)
        raise PermissionDeniedError(f"Your role cannot {operation}")


def _parse_quantity(value, field: str, minimum: int = 0) -> int:
    qty = safe_int(value, default=None)
    if qty is None:
        raise ValidationError(f"{field} is required")
    if qty < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return qty


def _parse_date(value: str) -> str:
    date = normalise_date(value or "")
    if not is_valid_iso_date(date):
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD")
    return date


def find_off_day(store: RecordStore, date: str) -> OffDay | None:
    date = normalise_date(date)
    return next((od for od in store.get_off_days() if od.date == date), None)


def _entry_index(entries: list[ProductionEntry], entry_id) -> int:
    target = str(entry_id)
    index = next((i for i, e in enumerate(entries) if str(e.id) == target), None)
    if index is None:
        raise EntryNotFoundError(entry_id)
    return index


def generate_batch_no(date: str, rng: np.random.Generator | None = None) -> str:
    """Batch number in the ``B-YYYYMMDD-NNNN`` form."""
    rng = rng or np.random.default_rng()
    return f"B-{normalise_date(date).replace('-', '')}-{int(rng.integers(0, 10000))}"


# ---------------------------------------------------------------------------
# Production entries
# ---------------------------------------------------------------------------
def add_plan(
    store: RecordStore,
    user: User,
    date: str,
    category: str,
    process: str,
    product_name: str,
    quantity,
) -> ProductionEntry:
    """Add a plan-only entry. Rejected on off-days."""
    _require_role(user, PLAN_ROLES, "add production plans")
    date = _parse_date(date)

    off_day = find_off_day(store, date)
    if off_day is not None:
        raise ValidationError(f"Entry restricted: {date} is an off-day ({off_day.description})")

    if not product_name or not str(product_name).strip() or quantity in (None, ""):
        raise ValidationError("Please fill all required fields")
    if not category or not process:
        raise ValidationError("Category and process are required")
    plan = _parse_quantity(quantity, "Plan quantity", minimum=1)

    entry = ProductionEntry(
        id=new_id(),
        date=date,
        category=category,
        process=process,
        product_name=str(product_name).strip(),
        plan_quantity=plan,
        actual_quantity=0,
        last_updated_by=user.id,
        updated_at=utc_now_iso(),
    )
    store.save_entries(store.get_entries() + [entry])
    store.add_log(
        user.id, user.name, "ADD_PLAN",
        f"Planned {plan} for {entry.product_name} on {date}",
    )
    logger.info("Added plan %s for %s on %s", entry.id, entry.product_name, date)
    return entry


def record_actual(
    store: RecordStore,
    user: User,
    entry_id,
    actual_quantity,
    manpower,
    batch_no: str,
) -> ProductionEntry:
    """Record the produced quantity against an existing plan entry."""
    _require_role(user, ACTUAL_ROLES, "record actual production")

    entries = store.get_entries()
    index = _entry_index(entries, entry_id)

    entry = entries[index]
    off_day = find_off_day(store, entry.date)
    if off_day is not None:
        raise ValidationError(f"Cannot enter data on an off-day ({off_day.description})")

    actual = _parse_quantity(actual_quantity, "Actual quantity")
    crew = _parse_quantity(manpower, "Manpower")
    if not batch_no or not str(batch_no).strip():
        raise ValidationError("Batch number is required")

    entries[index] = entry.updated(
        actual_quantity=actual,
        manpower=crew,
        batch_no=str(batch_no).strip(),
        last_updated_by=user.id,
        updated_at=utc_now_iso(),
    )
    store.save_entries(entries)
    store.add_log(
        user.id, user.name, "ADD_ACTUAL",
        f"Updated actuals for {entry.product_name}: {actual} units",
    )
    return entries[index]


def edit_entry(
    store: RecordStore,
    user: User,
    entry_id,
    *,
    date: str | None = None,
    category: str | None = None,
    process: str | None = None,
    product_name: str | None = None,
    plan_quantity=None,
    actual_quantity=None,
    batch_no: str | None = None,
    manpower=None,
) -> ProductionEntry:
    """Edit any field of an existing entry. Allowed on off-days."""
    _require_role(user, EDIT_ROLES, "edit production records")

    entries = store.get_entries()
    index = _entry_index(entries, entry_id)

    changes = {}
    if date is not None:
        changes["date"] = _parse_date(date)
    if category is not None:
        changes["category"] = category
    if process is not None:
        changes["process"] = process
    if product_name is not None:
        if not product_name.strip():
            raise ValidationError("Product name is required")
        changes["product_name"] = product_name.strip()
    if plan_quantity is not None:
        changes["plan_quantity"] = _parse_quantity(plan_quantity, "Plan quantity")
    if actual_quantity is not None:
        changes["actual_quantity"] = _parse_quantity(actual_quantity, "Actual quantity")
    if batch_no is not None:
        changes["batch_no"] = batch_no.strip() or None
    if manpower is not None:
        changes["manpower"] = _parse_quantity(manpower, "Manpower")

    updated = entries[index].updated(**changes, last_updated_by=user.id, updated_at=utc_now_iso())
    entries[index] = updated
    store.save_entries(entries)
    store.add_log(
        user.id, user.name, "EDIT_RECORD",
        f"Edited {updated.product_name} on {updated.date}",
    )
    return updated


def remove_entry(store: RecordStore, user: User, entry_id) -> ProductionEntry | None:
    """Delete an entry. Returns the removed entry, or None when the id was unknown."""
    _require_role(user, EDIT_ROLES, "delete production records")

    _, deleted = store.delete_entry(entry_id)
    if deleted is not None:
        store.add_log(
            user.id, user.name, "DELETE_RECORD",
            f"Deleted {deleted.product_name} on {deleted.date}",
        )
    return deleted


# ---------------------------------------------------------------------------
# Users and session
# ---------------------------------------------------------------------------
def add_user(
    store: RecordStore,
    actor: User,
    name: str,
    username: str,
    email: str,
    password: str,
    role: str = "operator",
) -> User:
    _require_role(actor, ADMIN_ROLES, "manage users")

    if not all(v and str(v).strip() for v in (name, username, email, password)):
        raise ValidationError("Please fill all required fields")
    if role not in ROLES:
        raise ValidationError(f"Unknown role '{role}'")

    users = store.get_users()
    if any(u.username.lower() == username.strip().lower() for u in users):
        raise ValidationError("Username already exists")

    user = User(
        id=new_id(),
        name=name.strip(),
        username=username.strip(),
        email=email.strip(),
        role=role,
        password=password,
    )
    store.save_users(users + [user])
    store.add_log(actor.id, actor.name, "ADD_USER", f"Created {user.role} account @{user.username}")
    return user


def delete_user(store: RecordStore, actor: User, user_id) -> User | None:
    """Remove a user. The last remaining admin cannot be removed."""
    _require_role(actor, ADMIN_ROLES, "manage users")

    users = store.get_users()
    target = next((u for u in users if str(u.id) == str(user_id)), None)
    if target is None:
        return None

    if target.role == "admin" and sum(1 for u in users if u.role == "admin") <= 1:
        raise ValidationError("Cannot delete the last admin")

    store.save_users([u for u in users if str(u.id) != str(user_id)])
    store.add_log(actor.id, actor.name, "DELETE_USER", f"Deleted account @{target.username}")
    return target


def change_password(
    store: RecordStore,
    user: User,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> User:
    if new_password != confirm_password:
        raise ValidationError("Passwords do not match")
    if not new_password:
        raise ValidationError("New password is required")

    users = store.get_users()
    index = next((i for i, u in enumerate(users) if str(u.id) == str(user.id)), None)
    if index is None:
        raise ValidationError("Unknown user")
    if users[index].password != current_password:
        raise ValidationError("Incorrect current password")

    users[index].password = new_password
    store.save_users(users)

    session = store.get_session()
    if session is not None and str(session.id) == str(user.id):
        store.set_session(users[index])

    store.add_log(user.id, user.name, "CHANGE_PASSWORD", "Password updated")
    return users[index]


def login(store: RecordStore, username: str, password: str, persist: bool = True) -> User:
    """Check credentials and log the sign-in.

    With persist=False the store's session record is left alone and the
    caller keeps track of the user (the web UI holds one per browser).
    """
    wanted = (username or "").strip().lower()
    user = next((u for u in store.get_users() if u.username.lower() == wanted), None)
    if user is None or user.password != password:
        logger.warning("Failed login for '%s'", username)
        raise ValidationError("Invalid username or password")

    if persist:
        store.set_session(user)
    store.add_log(user.id, user.name, "LOGIN", f"@{user.username} signed in")
    return user


def logout(store: RecordStore) -> None:
    store.set_session(None)


# ---------------------------------------------------------------------------
# Off-days
# ---------------------------------------------------------------------------
def add_off_day(store: RecordStore, actor: User, date: str, description: str) -> OffDay:
    """Mark a date as an off-day. An existing off-day on that date is replaced."""
    _require_role(actor, EDIT_ROLES, "manage off-days")
    date = _parse_date(date)
    if not description or not description.strip():
        raise ValidationError("Description is required")

    off_day = OffDay(date=date, description=description.strip())
    off_days = [od for od in store.get_off_days() if od.date != date]
    off_days.append(off_day)
    off_days.sort(key=lambda od: od.date)
    store.save_off_days(off_days)
    store.add_log(actor.id, actor.name, "ADD_OFF_DAY", f"{date}: {off_day.description}")
    return off_day


def remove_off_day(store: RecordStore, actor: User, date: str) -> OffDay | None:
    _require_role(actor, EDIT_ROLES, "manage off-days")
    date = normalise_date(date)

    off_days = store.get_off_days()
    removed = next((od for od in off_days if od.date == date), None)
    if removed is None:
        return None

    store.save_off_days([od for od in off_days if od.date != date])
    store.add_log(actor.id, actor.name, "REMOVE_OFF_DAY", f"{date}: {removed.description}")
    return removed
