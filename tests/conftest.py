from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pytest
from werkzeug.security import generate_password_hash

from employee_portal.attendance.model import AttendanceRecord
from employee_portal.container import assemble
from employee_portal.core.enums import Role, SortOrder
from employee_portal.core.exceptions import ConflictError
from employee_portal.employees.model import Employee
from employee_portal.notifications.email_notifier import DeliveryOutcome
from employee_portal.subjects.model import Subject
from employee_portal.users.model import User
from employee_portal.users.tokens import TokenService

PASSWORD = "Passw0rd!"
BASE_TIME = datetime(2024, 1, 1, 9, 0, 0)


class InMemoryDB:
    """Shared tables for the fake repositories plus a log of repository calls."""

    def __init__(self):
        self.users: Dict[str, User] = {}
        self.employees: Dict[str, Employee] = {}
        self.subjects: Dict[str, Subject] = {}
        self.links: List[Tuple[str, str]] = []  # (employee_id, subject_id)
        self.attendance: Dict[Tuple[str, date], AttendanceRecord] = {}
        self.calls: List[Tuple[str, List[Any]]] = []
        self.fail_with: Dict[str, Exception] = {}
        self._tick = 0

    def record(self, name: str, keys=()) -> None:
        self.calls.append((name, list(keys)))
        if name in self.fail_with:
            raise self.fail_with[name]

    def count_calls(self, name: str) -> int:
        return sum(1 for n, _ in self.calls if n == name)

    def keys_of(self, name: str) -> List[List[Any]]:
        return [keys for n, keys in self.calls if n == name]

    def next_time(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)


class InMemoryUsers:
    def __init__(self, db: InMemoryDB):
        self.db = db

    async def get_by_id(self, user_id):
        self.db.record("users.get_by_id", [user_id])
        return self.db.users.get(user_id)

    async def get_by_email(self, email):
        self.db.record("users.get_by_email", [email])
        return next((u for u in self.db.users.values() if u.email == email), None)

    async def find_many_by_ids(self, user_ids):
        ids = list(user_ids)
        self.db.record("users.find_many_by_ids", ids)
        # reversed: callers must not rely on row order
        return list(reversed([u for u in self.db.users.values() if u.id in ids]))

    async def create_user(self, *, email, password_hash, role, otp_hash, otp_expires):
        self.db.record("users.create_user", [email])
        if any(u.email == email for u in self.db.users.values()):
            raise ConflictError("User with this email already exists")
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            role=role,
            otp_hash=otp_hash,
            otp_expires=otp_expires,
            otp_verified=False,
            created_at=self.db.next_time(),
        )
        self.db.users[user.id] = user
        return user

    async def set_otp(self, user_id, *, otp_hash, otp_expires):
        self.db.record("users.set_otp", [user_id])
        user = self.db.users.get(user_id)
        if not user:
            return False
        self.db.users[user_id] = replace(user, otp_hash=otp_hash, otp_expires=otp_expires)
        return True

    async def mark_verified(self, user_id):
        self.db.record("users.mark_verified", [user_id])
        user = self.db.users.get(user_id)
        if not user:
            return False
        self.db.users[user_id] = replace(user, otp_verified=True, otp_hash=None, otp_expires=None)
        return True

    async def list_without_employee(self):
        self.db.record("users.list_without_employee")
        owners = {e.user_id for e in self.db.employees.values()}
        rows = [
            u
            for u in self.db.users.values()
            if u.role == Role.EMPLOYEE and u.otp_verified and u.id not in owners
        ]
        return sorted(rows, key=lambda u: u.created_at, reverse=True)


class InMemoryEmployees:
    SORT_KEYS = {
        "name": lambda e: e.name.lower(),
        "age": lambda e: -1 if e.age is None else e.age,
        "class": lambda e: (e.class_label or "").lower(),
        "createdAt": lambda e: e.created_at,
        "updatedAt": lambda e: e.updated_at,
    }

    def __init__(self, db: InMemoryDB):
        self.db = db

    async def get_by_id(self, employee_id):
        self.db.record("employees.get_by_id", [employee_id])
        return self.db.employees.get(employee_id)

    async def get_by_user_id(self, user_id):
        self.db.record("employees.get_by_user_id", [user_id])
        return next((e for e in self.db.employees.values() if e.user_id == user_id), None)

    async def find_many_by_ids(self, employee_ids):
        ids = list(employee_ids)
        self.db.record("employees.find_many_by_ids", ids)
        return list(reversed([e for e in self.db.employees.values() if e.id in ids]))

    async def find_many_by_user_ids(self, user_ids):
        ids = list(user_ids)
        self.db.record("employees.find_many_by_user_ids", ids)
        return [e for e in self.db.employees.values() if e.user_id in ids]

    async def find_by_subject_ids(self, subject_ids):
        ids = list(subject_ids)
        self.db.record("employees.find_by_subject_ids", ids)
        pairs = [(sid, self.db.employees[eid]) for eid, sid in self.db.links if sid in ids]
        return sorted(pairs, key=lambda p: p[1].name)

    def _matches(self, flt, e: Employee) -> bool:
        owner = self.db.users.get(e.user_id)
        if owner is None or owner.role != Role.EMPLOYEE or not owner.otp_verified:
            return False
        if flt.name is not None and flt.name.lower() not in e.name.lower():
            return False
        if flt.class_label is not None and flt.class_label.lower() not in (e.class_label or "").lower():
            return False
        if flt.age is not None and e.age != flt.age:
            return False
        if flt.is_active is not None and e.is_active != flt.is_active:
            return False
        return True

    async def list_page(self, flt, page):
        self.db.record("employees.list_page")
        rows = [e for e in self.db.employees.values() if self._matches(flt, e)]
        rows.sort(key=self.SORT_KEYS[page.sort_by], reverse=page.sort_order == SortOrder.DESC)
        return rows[page.skip : page.skip + page.take]

    async def count(self, flt):
        self.db.record("employees.count")
        return sum(1 for e in self.db.employees.values() if self._matches(flt, e))

    async def create(self, *, user_id, name, age=None, class_label=None, subject_ids=()):
        self.db.record("employees.create", [user_id])
        if any(e.user_id == user_id for e in self.db.employees.values()):
            raise ConflictError("User already has an employee record")
        now = self.db.next_time()
        employee = Employee(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            age=age,
            class_label=class_label,
            created_at=now,
            updated_at=now,
        )
        self.db.employees[employee.id] = employee
        self.db.links.extend((employee.id, sid) for sid in subject_ids)
        return employee

    async def update(self, employee_id, changes, subject_ids=None):
        self.db.record("employees.update", [employee_id])
        employee = self.db.employees.get(employee_id)
        if employee is None:
            return None
        if subject_ids is not None:
            self.db.links = [link for link in self.db.links if link[0] != employee_id]
            self.db.links.extend((employee_id, sid) for sid in dict.fromkeys(subject_ids))
        employee = replace(employee, **dict(changes), updated_at=self.db.next_time())
        self.db.employees[employee_id] = employee
        return employee

    async def delete(self, employee_id):
        self.db.record("employees.delete", [employee_id])
        if self.db.employees.pop(employee_id, None) is None:
            return False
        self.db.links = [link for link in self.db.links if link[0] != employee_id]
        for key in [k for k in self.db.attendance if k[0] == employee_id]:
            del self.db.attendance[key]
        return True


class InMemorySubjects:
    def __init__(self, db: InMemoryDB):
        self.db = db

    async def get_by_id(self, subject_id):
        self.db.record("subjects.get_by_id", [subject_id])
        return self.db.subjects.get(subject_id)

    async def get_by_name(self, name):
        self.db.record("subjects.get_by_name", [name])
        return next((s for s in self.db.subjects.values() if s.name.lower() == name.lower()), None)

    async def find_many_by_ids(self, subject_ids):
        ids = list(subject_ids)
        self.db.record("subjects.find_many_by_ids", ids)
        return list(reversed([s for s in self.db.subjects.values() if s.id in ids]))

    async def find_by_employee_ids(self, employee_ids):
        ids = list(employee_ids)
        self.db.record("subjects.find_by_employee_ids", ids)
        pairs = [(eid, self.db.subjects[sid]) for eid, sid in self.db.links if eid in ids]
        return sorted(pairs, key=lambda p: p[1].name)

    async def list_all(self):
        self.db.record("subjects.list_all")
        return sorted(self.db.subjects.values(), key=lambda s: s.name)

    async def create(self, name):
        self.db.record("subjects.create", [name])
        if any(s.name.lower() == name.lower() for s in self.db.subjects.values()):
            raise ConflictError("Subject with this name already exists")
        subject = Subject(id=str(uuid.uuid4()), name=name)
        self.db.subjects[subject.id] = subject
        return subject

    async def delete(self, subject_id):
        self.db.record("subjects.delete", [subject_id])
        if self.db.subjects.pop(subject_id, None) is None:
            return False
        self.db.links = [link for link in self.db.links if link[1] != subject_id]
        return True


class InMemoryAttendance:
    def __init__(self, db: InMemoryDB):
        self.db = db

    async def find_many_by_employee_ids(self, employee_ids):
        ids = list(employee_ids)
        self.db.record("attendance.find_many_by_employee_ids", ids)
        rows = [r for r in self.db.attendance.values() if r.employee_id in ids]
        return sorted(rows, key=lambda r: r.date, reverse=True)

    async def list_for_employee(self, employee_id, *, start_date=None, end_date=None):
        self.db.record("attendance.list_for_employee", [employee_id])
        rows = [
            r
            for r in self.db.attendance.values()
            if r.employee_id == employee_id
            and (start_date is None or r.date >= start_date)
            and (end_date is None or r.date <= end_date)
        ]
        return sorted(rows, key=lambda r: r.date, reverse=True)

    async def upsert(self, *, employee_id, work_date, status):
        self.db.record("attendance.upsert", [employee_id])
        key = (employee_id, work_date)
        existing = self.db.attendance.get(key)
        if existing:
            record = replace(existing, status=status)
        else:
            record = AttendanceRecord(
                id=str(uuid.uuid4()),
                employee_id=employee_id,
                date=work_date,
                status=status,
                created_at=self.db.next_time(),
            )
        self.db.attendance[key] = record
        return record


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []
        self.fail = False

    async def send(self, email: str, code: str) -> DeliveryOutcome:
        self.sent.append((email, code))
        if self.fail:
            return DeliveryOutcome(delivered=False, error="smtp down")
        return DeliveryOutcome(delivered=True)

    def codes_for(self, email: str) -> List[str]:
        return [code for to, code in self.sent if to == email]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    return InMemoryDB()


@pytest.fixture
def users_repo(db):
    return InMemoryUsers(db)


@pytest.fixture
def employees_repo(db):
    return InMemoryEmployees(db)


@pytest.fixture
def subjects_repo(db):
    return InMemorySubjects(db)


@pytest.fixture
def attendance_repo(db):
    return InMemoryAttendance(db)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def tokens():
    return TokenService("test-secret", expires_days=7)


@pytest.fixture
def container(users_repo, employees_repo, subjects_repo, attendance_repo, tokens, notifier):
    return assemble(
        users_repo=users_repo,
        employees_repo=employees_repo,
        subjects_repo=subjects_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        notifier=notifier,
    )


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(email: Optional[str] = None, *, role: Role = Role.EMPLOYEE, verified: bool = True) -> User:
        counter["n"] += 1
        user = User(
            id=str(uuid.uuid4()),
            email=email or f"user{counter['n']}@example.com",
            password_hash=generate_password_hash(PASSWORD),
            role=role,
            otp_verified=verified,
            created_at=db.next_time(),
        )
        db.users[user.id] = user
        return user

    return _make


@pytest.fixture
def make_subject(db):
    def _make(name: str) -> Subject:
        subject = Subject(id=str(uuid.uuid4()), name=name)
        db.subjects[subject.id] = subject
        return subject

    return _make


@pytest.fixture
def make_employee(db):
    def _make(user: User, name: str = "Jane Doe", *, age=None, class_label=None, subjects=(), is_active=True) -> Employee:
        now = db.next_time()
        employee = Employee(
            id=str(uuid.uuid4()),
            user_id=user.id,
            name=name,
            age=age,
            class_label=class_label,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        db.employees[employee.id] = employee
        db.links.extend((employee.id, s.id) for s in subjects)
        return employee

    return _make
