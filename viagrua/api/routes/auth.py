import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from viagrua.core.auth_dependency import get_db, get_current_perfil
from viagrua.core.security import hash_password, verify_password, create_access_token
from viagrua.db.models.empresa import Empresa
from viagrua.db.models.perfil import Perfil
from viagrua.schemas.auth import SignupRequest, TokenResponse, PerfilResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ✅ COMPANY SIGNUP (empresa + admin on the free plan)
@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    db: Session = Depends(get_db)
):
    email = payload.email.lower()
    existing = db.query(Perfil).filter(Perfil.email == email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")

    try:
        empresa = Empresa(nombre=payload.empresa_nombre)
        db.add(empresa)
        db.flush()

        perfil = Perfil(
            email=email,
            password_hash=hash_password(payload.password),
            nombre_completo=payload.nombre_completo,
            rol="admin",
            empresa_id=empresa.id,
            plan="free",
        )
        db.add(perfil)
        db.commit()
        db.refresh(perfil)
    except Exception as e:
        db.rollback()
        logger.error(f"Signup failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error creating account")

    logger.info(f"Empresa created: empresa_id={empresa.id}, admin_id={perfil.id}")

    return {
        "message": "User created successfully",
        "user_id": perfil.id,
        "empresa_id": empresa.id,
    }


# ✅ OAUTH2 LOGIN (username = email)
@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    perfil = db.query(Perfil).filter(Perfil.email == form_data.username.lower()).first()

    if not perfil or not verify_password(form_data.password, perfil.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": perfil.email})

    return {
        "access_token": token,
        "token_type": "bearer",
        "rol": perfil.rol,
    }


@router.get("/me", response_model=PerfilResponse)
def me(perfil: Perfil = Depends(get_current_perfil)):
    """Current profile; clients route admins to the dashboard and choferes to their panel."""
    return perfil
