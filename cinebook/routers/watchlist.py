from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..core.dependencies import get_current_user
from ..database import get_db

router = APIRouter()


@router.get("", response_model=List[schemas.WatchlistItem])
def read_watchlist(current_user=Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.list_watchlist(db, user_id=current_user.id)


@router.post("", response_model=schemas.WatchlistItem, status_code=status.HTTP_201_CREATED)
def add_to_watchlist(
        movie: schemas.MovieIn,
        current_user=Depends(get_current_user),
        db: Session = Depends(get_db)
):
    return crud.add_to_watchlist(db, user_id=current_user.id, movie=movie)


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_watchlist(movie_id: int, current_user=Depends(get_current_user), db: Session = Depends(get_db)):
    if not crud.remove_from_watchlist(db, user_id=current_user.id, movie_id=movie_id):
        raise HTTPException(status_code=404, detail="Movie is not in the watchlist")


@router.get("/rejected", response_model=schemas.RejectedList)
def read_rejected(current_user=Depends(get_current_user), db: Session = Depends(get_db)):
    return {"movie_ids": crud.list_rejected(db, user_id=current_user.id)}


@router.post("/rejected", response_model=schemas.RejectedList, status_code=status.HTTP_201_CREATED)
def reject_movie(
        data: schemas.RejectIn,
        current_user=Depends(get_current_user),
        db: Session = Depends(get_db)
):
    crud.reject_movie(db, user_id=current_user.id, movie_id=data.movie_id)
    return {"movie_ids": crud.list_rejected(db, user_id=current_user.id)}


@router.delete("/rejected/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def unreject_movie(movie_id: int, current_user=Depends(get_current_user), db: Session = Depends(get_db)):
    if not crud.unreject_movie(db, user_id=current_user.id, movie_id=movie_id):
        raise HTTPException(status_code=404, detail="Movie is not in the rejected list")
