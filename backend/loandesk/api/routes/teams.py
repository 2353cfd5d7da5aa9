from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loandesk.api.deps import get_db
from loandesk.models import Profile, Team, TeamMember
from loandesk.schemas.teams import (
    TeamCreate,
    TeamListResponse,
    TeamMemberCreate,
    TeamMemberOut,
    TeamOut,
    TeamUpdate,
)

router = APIRouter(prefix="/api/teams", tags=["teams"])

logger = logging.getLogger(__name__)


def _to_out(team: Team, member_count: int = 0) -> TeamOut:
    return TeamOut(
        id=team.id,
        name=team.name,
        member_count=member_count,
        created_at=team.created_at,
    )


def _member_to_out(member: TeamMember) -> TeamMemberOut:
    user = member.user
    return TeamMemberOut(
        id=member.id,
        team_id=member.team_id,
        user_id=member.user_id,
        full_name=user.full_name,
        email=user.email,
        role=user.role.value if user.role else None,
        created_at=member.created_at,
    )


def _get_team_or_404(team_id: UUID, db: Session) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if team is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    return team


def _member_count(team_id: UUID, db: Session) -> int:
    return db.query(func.count(TeamMember.id)).filter(TeamMember.team_id == team_id).scalar() or 0


@router.get("", response_model=TeamListResponse)
def list_teams(
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
) -> TeamListResponse:
    skip = max(0, skip)
    limit = max(1, min(limit, 100))

    total = db.query(Team).count()
    rows = (
        db.query(Team, func.count(TeamMember.id))
        .outerjoin(TeamMember, TeamMember.team_id == Team.id)
        .group_by(Team.id)
        .order_by(Team.name.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return TeamListResponse(total=total, teams=[_to_out(team, count) for team, count in rows])


@router.post("", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
def create_team(payload: TeamCreate, db: Session = Depends(get_db)) -> TeamOut:
    team = Team(name=payload.name)
    db.add(team)
    try:
        db.commit()
    except IntegrityError as exc:  # duplicate name
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Team name already exists") from exc
    db.refresh(team)
    logger.info("Team created", extra={"team_id": str(team.id)})
    return _to_out(team)


@router.patch("/{team_id}", response_model=TeamOut)
def rename_team(team_id: UUID, payload: TeamUpdate, db: Session = Depends(get_db)) -> TeamOut:
    team = _get_team_or_404(team_id, db)
    team.name = payload.name
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Team name already exists") from exc
    db.refresh(team)
    return _to_out(team, _member_count(team.id, db))


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(team_id: UUID, db: Session = Depends(get_db)) -> None:
    team = _get_team_or_404(team_id, db)
    # Memberships go with the team; the agents themselves stay
    db.delete(team)
    db.commit()
    logger.info("Team deleted", extra={"team_id": str(team_id)})


@router.get("/{team_id}/members", response_model=List[TeamMemberOut])
def list_team_members(team_id: UUID, db: Session = Depends(get_db)) -> List[TeamMemberOut]:
    _get_team_or_404(team_id, db)
    members = (
        db.query(TeamMember)
        .join(Profile, TeamMember.user_id == Profile.id)
        .filter(TeamMember.team_id == team_id)
        .order_by(Profile.first_name.asc(), Profile.last_name.asc())
        .all()
    )
    return [_member_to_out(m) for m in members]


@router.post("/{team_id}/members", response_model=TeamMemberOut, status_code=status.HTTP_201_CREATED)
def add_team_member(
    team_id: UUID,
    payload: TeamMemberCreate,
    db: Session = Depends(get_db),
) -> TeamMemberOut:
    _get_team_or_404(team_id, db)
    if db.query(Profile).filter(Profile.id == payload.user_id).first() is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown user")

    member = TeamMember(team_id=team_id, user_id=payload.user_id)
    db.add(member)
    try:
        db.commit()
    except IntegrityError as exc:  # uq_team_members_user
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User already belongs to a team",
        ) from exc
    db.refresh(member)
    logger.info("Team member added", extra={"team_id": str(team_id), "user_id": str(payload.user_id)})
    return _member_to_out(member)


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_team_member(team_id: UUID, user_id: UUID, db: Session = Depends(get_db)) -> None:
    member = (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        .first()
    )
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    db.delete(member)
    db.commit()
