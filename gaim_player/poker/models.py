"""
Poker table/player state as broadcast by the GAIM host, and the decision schema
returned to it. Field names follow the host's camelCase JSON.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PokerActionName = Literal["fold", "check", "call", "bet", "raise"]


class Card(BaseModel):
    rank: str  # '2'..'9', 'T', 'J', 'Q', 'K', 'A'
    suit: str  # 'clubs' | 'diamonds' | 'hearts' | 'spades'


class ForcedBets(BaseModel):
    ante: float = 0
    bigBlind: float
    smallBlind: float


class TableState(BaseModel):
    forcedBets: ForcedBets
    # Chips in each pot.
    pots: List[float] = Field(default_factory=list)
    # Biggest bet so far this betting round.
    biggestBet: float = 0
    communityCards: List[Card] = Field(default_factory=list)


class ChipRange(BaseModel):
    min: float
    max: float


class LegalActions(BaseModel):
    actions: List[str]
    # Present when the action is bet or raise.
    chipRange: Optional[ChipRange] = None


class PlayerState(BaseModel):
    name: str
    holeCards: List[Card]
    # Chips wagered this betting round.
    currentBet: float = 0
    # Total chips minus the current bet.
    stack: float
    # Indices into tableState.pots the player can win.
    inPots: List[int] = Field(default_factory=list)
    legalActions: LegalActions


class ActionHistoryEntry(BaseModel):
    roundOfBetting: str
    name: str
    action: str
    betSize: float = 0


class PokerPayload(BaseModel):
    """Content of a Query broadcast."""

    tableState: TableState
    playerState: PlayerState
    actionHistory: List[ActionHistoryEntry] = Field(default_factory=list)


class PokerAction(BaseModel):
    """Response schema sent back to the host."""

    action: PokerActionName
    betSize: float = Field(description="Bet size. 0 for fold, check and call.")


class PokerDecision(PokerAction):
    explanation: str = Field("", description="Brief reasons behind the decision.")
