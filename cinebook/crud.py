# cinebook/crud.py
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from . import models
from .core.security import verify_password


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


def get_user(db: Session, user_id: int):
    return db.get(models.User, user_id)


def create_user(db: Session, email: str, username: str, password_hash: str):
    """Stages the row and flushes so uniqueness violations surface here. Caller commits."""
    db_user = models.User(email=email, username=username, password=password_hash)
    db.add(db_user)
    db.flush()
    return db_user


def authenticate_user(db: Session, username: str, password: str):
    user = get_user_by_username(db, username=username)
    if not user:
        return False
    if not verify_password(password, user.password):
        return False
    return user


def upsert_pending_otp(db: Session, email: str, otp: str, expires_at):
    """INSERT ... ON CONFLICT (email) DO UPDATE: the latest request always wins."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert
    elif dialect == "sqlite":
        insert = sqlite.insert
    else:
        db.merge(models.PendingOtp(email=email, otp=otp, expires_at=expires_at))
        return

    stmt = insert(models.PendingOtp).values(email=email, otp=otp, expires_at=expires_at)
    stmt = stmt.on_conflict_do_update(
        index_elements=[models.PendingOtp.email],
        set_={"otp": stmt.excluded.otp, "expires_at": stmt.excluded.expires_at},
    )
    db.execute(stmt)


def get_pending_otp(db: Session, email: str):
    return (
        db.query(models.PendingOtp)
        .filter(models.PendingOtp.email == email)
        .populate_existing()
        .first()
    )


def consume_pending_otp(db: Session, email: str, otp: str) -> int:
    """Deletes the pending row only if it still holds ``otp``. Returns rows removed."""
    return (
        db.query(models.PendingOtp)
        .filter(models.PendingOtp.email == email, models.PendingOtp.otp == otp)
        .delete(synchronize_session=False)
    )


def create_session(db: Session, session_id: str, user_id: int, expires_at):
    db_session = models.UserSession(id=session_id, user_id=user_id, expires_at=expires_at)
    db.add(db_session)
    return db_session


def get_session(db: Session, session_id: str):
    return db.query(models.UserSession).filter(models.UserSession.id == session_id).first()


def delete_session(db: Session, session_id: str) -> int:
    return (
        db.query(models.UserSession)
        .filter(models.UserSession.id == session_id)
        .delete(synchronize_session=False)
    )


def delete_user_sessions(db: Session, user_id: int) -> int:
    return (
        db.query(models.UserSession)
        .filter(models.UserSession.user_id == user_id)
        .delete(synchronize_session=False)
    )


def list_watchlist(db: Session, user_id: int):
    return (
        db.query(models.WatchlistItem)
        .filter(models.WatchlistItem.user_id == user_id)
        .order_by(models.WatchlistItem.added_at.desc(), models.WatchlistItem.id.desc())
        .all()
    )


def get_watchlist_item(db: Session, user_id: int, movie_id: int):
    return (
        db.query(models.WatchlistItem)
        .filter(models.WatchlistItem.user_id == user_id, models.WatchlistItem.movie_id == movie_id)
        .first()
    )


def add_to_watchlist(db: Session, user_id: int, movie):
    existing = get_watchlist_item(db, user_id, movie.movie_id)
    if existing:
        return existing
    db.query(models.RejectedMovie).filter(
        models.RejectedMovie.user_id == user_id, models.RejectedMovie.movie_id == movie.movie_id
    ).delete(synchronize_session=False)
    item = models.WatchlistItem(user_id=user_id, **movie.model_dump())
    db.add(item)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent add won the unique constraint.
        db.rollback()
        return get_watchlist_item(db, user_id, movie.movie_id)
    db.refresh(item)
    return item


def remove_from_watchlist(db: Session, user_id: int, movie_id: int) -> bool:
    removed = (
        db.query(models.WatchlistItem)
        .filter(models.WatchlistItem.user_id == user_id, models.WatchlistItem.movie_id == movie_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed > 0


def list_rejected(db: Session, user_id: int):
    rows = (
        db.query(models.RejectedMovie.movie_id)
        .filter(models.RejectedMovie.user_id == user_id)
        .order_by(models.RejectedMovie.id)
        .all()
    )
    return [row.movie_id for row in rows]


def get_rejected_movie(db: Session, user_id: int, movie_id: int):
    return (
        db.query(models.RejectedMovie)
        .filter(models.RejectedMovie.user_id == user_id, models.RejectedMovie.movie_id == movie_id)
        .first()
    )


def reject_movie(db: Session, user_id: int, movie_id: int):
    existing = get_rejected_movie(db, user_id, movie_id)
    if existing:
        return existing
    db.query(models.WatchlistItem).filter(
        models.WatchlistItem.user_id == user_id, models.WatchlistItem.movie_id == movie_id
    ).delete(synchronize_session=False)
    rejected = models.RejectedMovie(user_id=user_id, movie_id=movie_id)
    db.add(rejected)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return get_rejected_movie(db, user_id, movie_id)
    db.refresh(rejected)
    return rejected


def unreject_movie(db: Session, user_id: int, movie_id: int) -> bool:
    removed = (
        db.query(models.RejectedMovie)
        .filter(models.RejectedMovie.user_id == user_id, models.RejectedMovie.movie_id == movie_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed > 0
