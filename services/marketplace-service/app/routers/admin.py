"""
Administrator account endpoints.

The first administrator is bootstrapped with the shared admin secret key;
further administrators are created by an existing one.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import CurrentUser, require_roles
from ..database import get_db
from ..domain.entities import UserRole
from ..schemas import AdminCreate, AdminCreatedResponse, AdminUser, InitialAdminCreate
from ..services import user_service

router = APIRouter(prefix="/api/admin", tags=["Administration"])


@router.post(
    "/create",
    response_model=AdminCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Bootstrap the first administrator",
)
def create_initial_admin(payload: InitialAdminCreate, db: Session = Depends(get_db)):
    """
    Create the first administrator account.

    Raises:
        HTTPException: 403 on a wrong secret key, 400 when an administrator
            already exists or the email is taken
    """
    admin = user_service.create_initial_admin(
        db, payload.name, payload.email, payload.password, payload.admin_secret_key
    )
    return AdminCreatedResponse(
        message="Administrator account created successfully",
        admin=AdminUser.model_validate(admin),
    )


@router.put(
    "/create",
    response_model=AdminCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create another administrator",
)
def create_admin(
    payload: AdminCreate,
    current_user: CurrentUser = Depends(
        require_roles(UserRole.ADMINISTRATOR, detail="Unauthorized. Admin access required.")
    ),
    db: Session = Depends(get_db),
):
    admin = user_service.create_admin(
        db, current_user.id, payload.name, payload.email, payload.password
    )
    return AdminCreatedResponse(
        message="Administrator account created successfully by existing admin",
        admin=AdminUser.model_validate(admin),
    )
