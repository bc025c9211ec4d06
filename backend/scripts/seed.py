"""Seed script — creates approver users, a delegation, and sample workflows.

Idempotent for users; workflows are only created when none exist yet.
Run: python scripts/seed.py
"""
import sys
import os
from datetime import date, timedelta
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from adminos.core.roles import Role
from adminos.core.security import create_access_token
from adminos.db.session import SyncSessionLocal
from adminos.models.approval_workflow import ApprovalWorkflowRecord
from adminos.models.delegation import UserDelegation
from adminos.models.user import User
from adminos.schemas.approval_workflow import RequestType
from adminos.services import workflow_service


# ─── Upsert helpers ───────────────────────────────────────────────────────────

def _upsert_user(db: Session, email: str, name: str, role: Role, department: str | None = None) -> User:
    user = db.execute(select(User).where(User.email == email)).scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(email=email, name=name, role=role.value, department=department, is_active=True)
    db.add(user)
    db.flush()
    print(f"  [new]  User {email} ({role.value})")
    return user


def seed() -> None:
    db = SyncSessionLocal()
    try:
        print("Users:")
        employee = _upsert_user(db, "employee@adminos.local", "Erin Employee", Role.EMPLOYEE, "Engineering")
        manager = _upsert_user(db, "manager@adminos.local", "Morgan Manager", Role.DEPT_MANAGER, "Engineering")
        deputy = _upsert_user(db, "deputy@adminos.local", "Dana Deputy", Role.PROJECT_MANAGER, "Engineering")
        _upsert_user(db, "finance@adminos.local", "Frankie Finance", Role.FINANCE_DIRECTOR, "Finance")
        _upsert_user(db, "hr@adminos.local", "Harper HR", Role.HR_HEAD, "People")
        _upsert_user(db, "ceo@adminos.local", "Casey CEO", Role.EXECUTIVE)
        _upsert_user(db, "procurement@adminos.local", "Pat Procurement", Role.PROCUREMENT_OFFICER, "Operations")
        _upsert_user(db, "admin@adminos.local", "Alex Admin", Role.SUPER_ADMIN)

        has_delegation = db.execute(
            select(UserDelegation).where(UserDelegation.delegator_id == manager.id)
        ).scalars().first()
        if has_delegation is None:
            db.add(UserDelegation(
                delegator_id=manager.id,
                delegate_id=deputy.id,
                valid_from=date.today(),
                valid_until=date.today() + timedelta(days=14),
                is_active=True,
            ))
            print("  [new]  Delegation manager -> deputy (14 days)")
        db.commit()

        existing = db.execute(select(func.count()).select_from(ApprovalWorkflowRecord)).scalar_one()
        if existing:
            print(f"Workflows: [skip] {existing} already present")
        else:
            print("Workflows:")
            samples = [
                (RequestType.EXPENSE, "Conference travel", Decimal("1200.00")),
                (RequestType.EXPENSE, "Team offsite", Decimal("8400.00")),
                (RequestType.LEAVE, "Annual leave, two weeks", None),
                (RequestType.BUDGET, "Q3 tooling budget", Decimal("65000.00")),
                (RequestType.ASSET, "Laptop refresh", Decimal("3200.00")),
            ]
            for request_type, description, amount in samples:
                wf = workflow_service.create_workflow(
                    db=db,
                    request_type=request_type,
                    requested_by=str(employee.id),
                    description=description,
                    amount=amount,
                )
                print(f"  [new]  {request_type.value}: {description} ({len(wf.approval_chain)} levels)")

        print("\nDev bearer token for the employee:")
        print(f"  {create_access_token(subject=str(employee.id), role=employee.role)}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
