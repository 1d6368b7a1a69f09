from __future__ import annotations

from typing import List, Sequence

from gaim_player.poker.models import ActionHistoryEntry, Card, PlayerState, TableState


def format_cards(cards: Sequence[Card]) -> str:
    return ", ".join(f"{card.rank} of {card.suit}" for card in cards)


def _format_bet(bet_size: float) -> str:
    if not bet_size:
        return ""
    return str(int(bet_size)) if float(bet_size).is_integer() else str(bet_size)


def action_history_strings(action_history: Sequence[ActionHistoryEntry]) -> List[str]:
    # Long names are clipped to 8 chars to keep the prompt compact.
    return [
        f"During the {entry.roundOfBetting}, {entry.name[:8]} {entry.action}s {_format_bet(entry.betSize)}".rstrip()
        for entry in action_history
    ]


def generate_poker_prompt(
    table_state: TableState,
    player_state: PlayerState,
    action_history: Sequence[ActionHistoryEntry],
) -> str:
    legal = player_state.legalActions
    bet_range = ""
    if legal.chipRange:
        bet_range = (
            "If you choose a legal action that requires a bet size, it must be a minimum of "
            f"{_format_bet(legal.chipRange.min) or 0} dollars and a maximum of "
            f"{_format_bet(legal.chipRange.max) or 0} dollars."
        )

    return f"""
Your name is {player_state.name}, and you are a poker agent playing Texas Hold'em.

Assess the current situation and decide what kind of action to take.
If applicable, also decide the size of bet to make.

Your current properties are:
- Chips: {_format_bet(player_state.stack) or 0}
- Hand: [{format_cards(player_state.holeCards)}]
- Current Bet: {_format_bet(player_state.currentBet) or 0}

Take into account the table's community cards and biggest bet to make your decision.
- Community Cards: [{format_cards(table_state.communityCards)}]
- Biggest Bet: {_format_bet(table_state.biggestBet) or 0}

Review the action history and opponent behavior to inform your decision:
- Action History: [{", ".join(action_history_strings(action_history))}]

If there are no entries in the Action History, you are the first player to act in this round.

Based on this information, decide on a legal action from the following list:
- Legal Actions: [{", ".join(legal.actions)}]
{bet_range}

The basic strategy behind each type of action is as follows:
- Fold: If your hand is weak and opponents show strength. Does not require a bet size.
- Call: If your current bet is less than the biggest bet, but the biggest bet value is reasonable and your hand has potential. Does not require a bet size.
- Check: If your current bet is equal to the biggest bet, and you want to see the next card for free. Does not require a bet size.
- Raise: If your current bet is less than the biggest bet, but your hand is strong and you want to increase the pot size or bluff. Requires a bet size.
- Bet: If your current bet is equal to the biggest bet, but your hand is strong and you want to increase the pot size or bluff. Requires a bet size.

Respond with an action from the Legal Actions list, a valid bet size, and a brief explanation of the reasons behind your decision.
""".strip()
