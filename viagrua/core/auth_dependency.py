from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from viagrua.core.config import SECRET_KEY, ALGORITHM
from viagrua.db.session import SessionLocal
from viagrua.db.models.perfil import Perfil

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme)):
    """Get current user email from JWT token."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        email: str = payload.get("sub")

        if email is None:
            raise HTTPException(status_code=401, detail="Invalid token")

        return email

    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_perfil(
    email: str = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Perfil:
    """Get current Perfil object from JWT token."""
    perfil = db.query(Perfil).filter(Perfil.email == email).first()
    if not perfil:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Perfil not found"
        )
    return perfil


def require_empresa(perfil: Perfil = Depends(get_current_perfil)) -> Perfil:
    """Profile that still belongs to a company (expelled choferes don't)."""
    if perfil.empresa_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="El perfil no pertenece a ninguna empresa"
        )
    return perfil


def require_admin(perfil: Perfil = Depends(require_empresa)) -> Perfil:
    """Admin of a company."""
    if not perfil.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo administradores"
        )
    return perfil
