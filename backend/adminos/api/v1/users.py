"""Current-user and delegation endpoints.

  GET    /users/me
  PUT    /users/{user_id}/delegation
  DELETE /users/{user_id}/delegation

Delegations feed the default approval-chain builder: a delegate is added
to the approver set of every new workflow that would have gone to the
delegator while the delegation is valid.
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adminos.core.deps import get_current_user, require_permission
from adminos.core.roles import Permission, has_permission
from adminos.db.session import get_session
from adminos.models.delegation import UserDelegation
from adminos.models.user import User
from adminos.schemas.delegation import UserDelegationIn, UserDelegationOut
from adminos.schemas.user import UserOut

router = APIRouter()


def _check_delegation_scope(current_user: User, user_id: uuid.UUID) -> None:
    # Only managers of any delegation may act for other users
    if current_user.id != user_id and not has_permission(
        current_user.role, Permission.DELEGATION_MANAGE_ANY
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own delegation.",
        )


# ─── Me ───

@router.get("/me", response_model=UserOut, summary="Current user with effective permissions")
async def me(current_user: Annotated[User, Depends(get_current_user)]):
    out = UserOut.model_validate(current_user)
    out.permissions = sorted(p.value for p in Permission if has_permission(current_user.role, p))
    return out


# ─── Delegation ───

@router.put(
    "/{user_id}/delegation",
    response_model=UserDelegationOut,
    summary="Set or update delegation for a user",
)
async def set_delegation(
    user_id: uuid.UUID,
    body: UserDelegationIn,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[User, Depends(require_permission(Permission.DELEGATION_MANAGE_OWN))],
):
    _check_delegation_scope(current_user, user_id)

    if body.delegate_id == user_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="A user cannot delegate to themselves.",
        )
    if body.valid_until is not None and body.valid_until < body.valid_from:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="valid_until must not precede valid_from.",
        )

    delegate = (
        await db.execute(select(User).where(User.id == body.delegate_id))
    ).scalar_one_or_none()
    if delegate is None or not delegate.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Delegate not found.")

    # Deactivate any existing active delegation for this delegator
    existing_result = await db.execute(
        select(UserDelegation).where(
            UserDelegation.delegator_id == user_id,
            UserDelegation.is_active.is_(True),
        )
    )
    for existing in existing_result.scalars().all():
        existing.is_active = False

    delegation = UserDelegation(
        delegator_id=user_id,
        delegate_id=body.delegate_id,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        is_active=True,
    )
    db.add(delegation)
    await db.commit()
    await db.refresh(delegation)
    return UserDelegationOut.model_validate(delegation)


@router.delete(
    "/{user_id}/delegation",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove active delegation for a user",
)
async def remove_delegation(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[User, Depends(require_permission(Permission.DELEGATION_MANAGE_OWN))],
):
    _check_delegation_scope(current_user, user_id)

    result = await db.execute(
        select(UserDelegation).where(
            UserDelegation.delegator_id == user_id,
            UserDelegation.is_active.is_(True),
        )
    )
    delegations = result.scalars().all()
    if not delegations:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active delegation found.")

    for d in delegations:
        d.is_active = False
    await db.commit()
