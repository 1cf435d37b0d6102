"""Leaderboard of users by liquid, expected and best-case money."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from predmarket.model import Bet, Store, User, UserBet


@dataclass
class LeaderboardEntry:
    name: str
    liquid_money: float
    expected_money: float
    max_money: float


def _probability_of_yes(bet: Bet) -> float:
    total = bet.yes_pool + bet.no_pool
    return bet.no_pool / total if total else math.nan


def compute_leaderboard(
    users: Iterable[User], bets: Iterable[Bet], user_bets: Iterable[UserBet]
) -> list[LeaderboardEntry]:
    """Value every user's holdings, in the order the users are given."""
    bets = list(bets)
    positions: dict[tuple[str, str, bool], UserBet] = {}
    for user_bet in user_bets:
        positions.setdefault((user_bet.user_id, user_bet.bet_id, user_bet.is_yes), user_bet)

    entries = []
    for user in users:
        expected = user.money
        best = user.money
        for bet in bets:
            p_yes = _probability_of_yes(bet)
            is_creator = bet.creator_id == user.id
            yes_bet = positions.get((user.id, bet.id, True))
            no_bet = positions.get((user.id, bet.id, False))

            pool_value = bet.yes_pool * p_yes + bet.no_pool * (1.0 - p_yes) if is_creator else 0.0
            yes_value = yes_bet.amount * p_yes if yes_bet else 0.0
            no_value = no_bet.amount * (1.0 - p_yes) if no_bet else 0.0
            expected += yes_value + no_value + pool_value

            yes_max = yes_bet.amount + (bet.yes_pool if is_creator else 0.0) if yes_bet else 0.0
            no_max = no_bet.amount + (bet.no_pool if is_creator else 0.0) if no_bet else 0.0
            best += max(yes_max, no_max)

        entries.append(LeaderboardEntry(user.name, user.money, expected, best))
    return entries


def leaderboard(store: Store) -> list[LeaderboardEntry]:
    """Leaderboard built from the current contents of ``store``."""
    return compute_leaderboard(store.list_users(), store.list_bets(), store.list_user_bets())