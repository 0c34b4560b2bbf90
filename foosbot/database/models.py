from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean,
    ForeignKey, BigInteger, Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List

Base = declarative_base()

STAT_DEFAULTS = {
    'elo_gains': 0,
    'matches_played': 0,
    'dry_wins': 0,
    'total_wins': 0,
    'longest_streak': 0,
    'total_points': 0,
}

def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

class MatchTeam(Enum):
    WINNER = "winner"
    LOSER = "loser"

class Player(Base):
    __tablename__ = 'players'

    id = Column(Integer, primary_key=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(100))
    alias = Column(String(100), nullable=True)

    elo = Column(Integer, default=1000, nullable=False)

    # Notification address (Discord user id); players without one are never messaged
    chat_id = Column(BigInteger, nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow)

    season_start_elos = relationship(
        "SeasonStartElo", back_populates="player",
        cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint('elo >= 0', name='ck_players_elo_non_negative'),
        Index('ix_players_elo', 'elo'),
    )

    @property
    def display_name(self) -> str:
        """Alias wins over the registered name, which wins over the handle."""
        return self.alias or self.name or self.username

    def season_start_elo(self, season: str) -> Optional[int]:
        for entry in self.season_start_elos:
            if entry.season == season:
                return entry.elo
        return None

    def __repr__(self):
        return f"<Player(username='{self.username}', elo={self.elo})>"

class SeasonStartElo(Base):
    """Player's Elo as recorded on first contact with a season. Written once."""
    __tablename__ = 'season_start_elos'

    id = Column(Integer, primary_key=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)
    season = Column(String(7), nullable=False)
    elo = Column(Integer, nullable=False)
    recorded_at = Column(DateTime, default=utcnow)

    player = relationship("Player", back_populates="season_start_elos")

    __table_args__ = (UniqueConstraint('player_id', 'season', name='uq_season_start_elo'),)

    def __repr__(self):
        return f"<SeasonStartElo(player_id={self.player_id}, season='{self.season}', elo={self.elo})>"

class Match(Base):
    """
    A finalized 2v2 match. Rows are appended once and never updated.

    Player membership and Elo deltas live on MatchParticipant, one row per
    player, ordered within each pair by position.
    """
    __tablename__ = 'matches'

    id = Column(Integer, primary_key=True)
    season = Column(String(7), nullable=False, index=True)
    played_at = Column(DateTime, nullable=False, default=utcnow)
    is_dry_win = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow)

    participants = relationship(
        "MatchParticipant", back_populates="match",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="MatchParticipant.position"
    )

    __table_args__ = (Index('ix_matches_season_played_at', 'season', 'played_at'),)

    def _team(self, team: MatchTeam) -> List['MatchParticipant']:
        return sorted(
            (p for p in self.participants if p.team == team),
            key=lambda p: p.position
        )

    @property
    def winners(self) -> List['MatchParticipant']:
        return self._team(MatchTeam.WINNER)

    @property
    def losers(self) -> List['MatchParticipant']:
        return self._team(MatchTeam.LOSER)

    @property
    def winner_elo_changes(self) -> List[int]:
        return [p.elo_change for p in self.winners]

    @property
    def loser_elo_changes(self) -> List[int]:
        return [p.elo_change for p in self.losers]

    def is_winner(self, player_id: int) -> bool:
        return any(p.player_id == player_id for p in self.winners)

    def participant_for(self, player_id: int) -> Optional['MatchParticipant']:
        for participant in self.participants:
            if participant.player_id == player_id:
                return participant
        return None

    def __repr__(self):
        return f"<Match(id={self.id}, season='{self.season}', dry_win={self.is_dry_win})>"

class MatchParticipant(Base):
    __tablename__ = 'match_participants'

    id = Column(Integer, primary_key=True)
    match_id = Column(Integer, ForeignKey('matches.id'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)
    team = Column(SQLEnum(MatchTeam), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # 0 or 1 within the pair
    elo_change = Column(Integer, nullable=False, default=0)

    match = relationship("Match", back_populates="participants")
    player = relationship("Player", lazy="selectin")

    __table_args__ = (UniqueConstraint('match_id', 'player_id', name='uq_match_participant'),)

    def __repr__(self):
        return f"<MatchParticipant(match_id={self.match_id}, player_id={self.player_id}, team={self.team.value})>"

class Season(Base):
    """Materialized per-season aggregate. Can be rebuilt from the match ledger."""
    __tablename__ = 'seasons'

    id = Column(Integer, primary_key=True)
    season = Column(String(7), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow)

    player_stats = relationship(
        "PlayerSeasonStats", back_populates="season",
        cascade="all, delete-orphan", lazy="selectin"
    )

    def get_player_stats(self, player_id: int) -> Optional['PlayerSeasonStats']:
        for stats in self.player_stats:
            if stats.player_id == player_id:
                return stats
        return None

    def add_or_update_player_stats(self, player_id: int, **fields) -> 'PlayerSeasonStats':
        """Upsert one player's row, leaving fields that are not passed untouched."""
        stats = self.get_player_stats(player_id)
        if stats is None:
            values = dict(STAT_DEFAULTS)
            values.update(fields)
            stats = PlayerSeasonStats(player_id=player_id, **values)
            self.player_stats.append(stats)
        else:
            for key, value in fields.items():
                setattr(stats, key, value)
        self.last_updated = utcnow()
        return stats

    def __repr__(self):
        return f"<Season(season='{self.season}', players={len(self.player_stats)})>"

class PlayerSeasonStats(Base):
    __tablename__ = 'player_season_stats'

    id = Column(Integer, primary_key=True)
    season_id = Column(Integer, ForeignKey('seasons.id'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)

    elo_gains = Column(Integer, default=0, nullable=False)
    matches_played = Column(Integer, default=0, nullable=False)
    dry_wins = Column(Integer, default=0, nullable=False)
    total_wins = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)

    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    season = relationship("Season", back_populates="player_stats")
    player = relationship("Player", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('season_id', 'player_id', name='uq_player_season_stats'),
        CheckConstraint('elo_gains >= 0', name='ck_player_season_stats_elo_gains'),
    )

    def __repr__(self):
        return f"<PlayerSeasonStats(season_id={self.season_id}, player_id={self.player_id}, points={self.total_points})>"
