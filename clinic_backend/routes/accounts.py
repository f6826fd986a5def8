# clinic_backend/routes/accounts.py
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from clinic_backend import db
from clinic_backend.accounts import (
    AccountError, AccountExists, AdminAuthClient, RoleAssignmentFailed, RoleWriter, register_account,
)

router = APIRouter(tags=["accounts"])


class RegisterReq(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    role: Literal["doctor", "secretary"]


def get_admin_client() -> AdminAuthClient:
    return AdminAuthClient()


def get_role_writer() -> RoleWriter:
    return db.insert_role


@router.post("/auth/register", status_code=201)
def register(
    body: RegisterReq,
    admin: AdminAuthClient = Depends(get_admin_client),
    insert_role: RoleWriter = Depends(get_role_writer),
) -> Dict[str, Any]:
    try:
        return register_account(
            admin,
            insert_role,
            email=body.email.strip(),
            password=body.password,
            full_name=body.full_name.strip(),
            phone=body.phone.strip(),
            role=body.role,
        )
    except AccountExists:
        raise HTTPException(status_code=409, detail="User already registered")
    except RoleAssignmentFailed as e:
        raise HTTPException(status_code=502, detail=e.message)
    except AccountError as e:
        raise HTTPException(status_code=502, detail=e.message)
