# backend/verifyme/routers/auth.py
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from verifyme import config
from verifyme.dependencies import get_store
from verifyme.models.users import AdminIdentity, LoginRequest
from verifyme.store import RecordStore
from verifyme.utils.jwt_handler import create_access_token, decode_token
from verifyme.utils.logger import get_logger
from verifyme.utils.security import verify_password

router = APIRouter(prefix="/auth", tags=["Authentication"])
bearer_scheme = HTTPBearer(auto_error=True)
logger = get_logger(__name__)


# ==================== LOGIN ====================
@router.post("/login")
async def login(data: LoginRequest, store: RecordStore = Depends(get_store)):
    """Admin login with JWT token"""
    found = await store.get_admin(data.email)

    if not found or not verify_password(data.password, found[1]):
        logger.warning("Auth login failed - %s", data.email)
        raise HTTPException(401, "Invalid email or password")

    admin, _ = found
    if not admin.is_active:
        raise HTTPException(403, "Account is deactivated. Contact administrator.")

    await store.touch_admin_login(admin.id)

    access_token = create_access_token({
        "sub": admin.email,
        "admin_id": admin.id,
        "role": "admin",
    })
    logger.info("Auth login success - %s", admin.email)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "admin": {
            "id": admin.id,
            "email": admin.email,
        }
    }


# ==================== GET CURRENT ADMIN ====================
async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: RecordStore = Depends(get_store),
) -> AdminIdentity:
    """Get current authenticated admin"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
        email = payload.get("sub")
        if email is None or payload.get("type") != "access":
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    found = await store.get_admin(email)
    if not found:
        raise credentials_exception

    admin, _ = found
    if not admin.is_active:
        raise HTTPException(403, "Account is deactivated")
    return admin


@router.get("/me")
async def me(admin: AdminIdentity = Depends(get_current_admin)):
    """Current admin profile"""
    return {
        "id": admin.id,
        "email": admin.email,
        "identity": admin.identity,
        "last_login": admin.last_login.isoformat() if admin.last_login else None,
    }


# ==================== LOGOUT ====================
@router.post("/logout")
async def logout(admin: AdminIdentity = Depends(get_current_admin)):
    """Logout admin (client should delete token)"""
    logger.info("Auth logout - %s", admin.identity)
    return {"msg": "Logged out successfully"}
