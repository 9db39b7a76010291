from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_OTP_TTL_MINUTES, DEFAULT_TOKEN_DAYS
from .database.connection import DatabaseConnection, DBConfig
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .loaders.loader_set import LoaderSet, create_loaders
from .notifications.email_notifier import Notifier
from .subjects.mysql_subject_repository import MySQLSubjectRepository
from .subjects.repository import SubjectRepository
from .subjects.service import SubjectService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService
from .users.tokens import TokenService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    employees_repo: EmployeeRepository
    subjects_repo: SubjectRepository
    attendance_repo: AttendanceRepository

    tokens: TokenService
    notifier: Notifier

    auth_service: AuthService
    employee_service: EmployeeService
    subject_service: SubjectService
    attendance_service: AttendanceService

    conn: Optional[DatabaseConnection] = None

    def new_loaders(self) -> LoaderSet:
        """Fresh loaders for one request; never cache the result."""
        return create_loaders(
            users=self.users_repo,
            employees=self.employees_repo,
            subjects=self.subjects_repo,
            attendance=self.attendance_repo,
        )


def assemble(
    *,
    users_repo: UserRepository,
    employees_repo: EmployeeRepository,
    subjects_repo: SubjectRepository,
    attendance_repo: AttendanceRepository,
    tokens: TokenService,
    notifier: Notifier,
    otp_ttl_minutes: int = DEFAULT_OTP_TTL_MINUTES,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    return Container(
        users_repo=users_repo,
        employees_repo=employees_repo,
        subjects_repo=subjects_repo,
        attendance_repo=attendance_repo,
        tokens=tokens,
        notifier=notifier,
        auth_service=AuthService(users_repo, tokens, notifier, otp_ttl_minutes=otp_ttl_minutes),
        employee_service=EmployeeService(employees_repo, users_repo, subjects_repo),
        subject_service=SubjectService(subjects_repo),
        attendance_service=AttendanceService(attendance_repo, employees_repo),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    notifier: Notifier,
    token_days: int = DEFAULT_TOKEN_DAYS,
    otp_ttl_minutes: int = DEFAULT_OTP_TTL_MINUTES,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return assemble(
        users_repo=MySQLUserRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        subjects_repo=MySQLSubjectRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        tokens=TokenService(jwt_secret, expires_days=token_days),
        notifier=notifier,
        otp_ttl_minutes=otp_ttl_minutes,
        conn=conn,
    )
