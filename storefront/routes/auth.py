from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from storefront.database import get_session
from storefront.errors import AuthError, ConflictError
from storefront.models.user import User
from storefront.schemas.user_schemas import AuthResponse, MeResponse, UserLogin, UserRead, UserRegister
from storefront.services.access_set import list_access_set
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import create_access_token, get_current_user


router = APIRouter()


@router.get("/ping")
def ping():
    return {"ok": True, "service": "storefront-auth"}


def _user_read(session: Session, user: User) -> UserRead:
    return UserRead(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        purchased_books=list_access_set(session, user.id),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise ConflictError("Email is already registered")

    user = User(
        name=payload.name,
        email=email,
        password=hash_password(payload.password),
        role="user",  # never from the client
    )

    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # concurrent registration with the same email
        session.rollback()
        raise ConflictError("Email is already registered")
    session.refresh(user)

    token = create_access_token({"user_id": user.id})
    return AuthResponse(token=token, user=_user_read(session, user))


@router.post("/login", response_model=AuthResponse)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password):
        raise AuthError("Invalid credentials")

    token = create_access_token({"user_id": user.id})
    return AuthResponse(token=token, user=_user_read(session, user))


@router.get("/me", response_model=MeResponse)
def me(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return MeResponse(user=_user_read(session, current_user))
