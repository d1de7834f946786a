from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel import Session

from tourbook.audit.service import AuditRequestContext
from tourbook.auth import service
from tourbook.auth.schemas import (
    AdminCreateUserRequest,
    AdminUpdateUserRequest,
    UpdateMeRequest,
    UserData,
    UserListResponse,
    UserResponse,
    UsersData,
)
from tourbook.auth.user_model import User, UserRead
from tourbook.db import get_session
from tourbook.dependencies import get_current_user, get_request_audit_context, require_admin

router = APIRouter(tags=["users"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(data=UserData(user=UserRead.model_validate(user)))


# —————— Autoservicio (cualquier usuario autenticado) ——————


@router.get("/me", response_model=UserResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return _user_response(current_user)


@router.patch("/updateMe", response_model=UserResponse)
def update_me(
    payload: UpdateMeRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    fields = payload.model_dump(exclude_unset=True, by_alias=True)
    user = service.update_me(session, current_user, fields, ctx=audit_ctx)
    return _user_response(user)


@router.delete("/deleteMe", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_me(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    service.deactivate_user(session, current_user.id, actor=current_user, ctx=audit_ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# —————— Administración (solo rol admin) ——————


@router.get("/", response_model=UserListResponse)
def list_users(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    users = service.list_users(session, limit=limit, offset=offset)
    return UserListResponse(
        results=len(users),
        data=UsersData(users=[UserRead.model_validate(u) for u in users]),
    )


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminCreateUserRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    user = service.admin_create_user(
        session,
        actor=current_user,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        password_confirm=payload.password_confirm,
        role=payload.role,
        ctx=audit_ctx,
    )
    return _user_response(user)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return _user_response(service.get_user(session, user_id))


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: AdminUpdateUserRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    fields = payload.model_dump(exclude_unset=True, by_alias=True)
    user = service.admin_update_user(session, user_id, fields, actor=current_user, ctx=audit_ctx)
    return _user_response(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_admin),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    service.deactivate_user(session, user_id, actor=current_user, ctx=audit_ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
