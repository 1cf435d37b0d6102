"""Market operations: dashboard, placing, creating, closing and resolving bets."""

from __future__ import annotations

import math
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from predmarket.model import Bet, Store, User, UserBet, YesOrNo, YesOrNoOrNA

MIN_STARTING_MONEY = 20
ERROR_MARGIN = 0.0000001
ADMIN_NAME = "Jefferson"
GIFT_AMOUNT = 100.0


class MarketError(Exception):
    """A request the market refuses; ``status`` is the matching HTTP status."""

    status = 500


class BadRequestError(MarketError):
    status = 400


class NotFoundError(MarketError):
    status = 404


class ConflictError(MarketError):
    status = 409


@dataclass
class DashboardBetInfo:
    bet_id: str
    name: str
    creator_id: str
    creator_name: str
    created_seconds_since_epoch: int
    yes_pool: float
    no_pool: float
    probability_of_yes: float
    user_yes: Optional[UserBet]
    user_no: Optional[UserBet]
    closed: bool


@dataclass
class Dashboard:
    user: User
    bets: list[DashboardBetInfo] = field(default_factory=list)
    logs: list[tuple[int, str]] = field(default_factory=list)


def share_price(amount: int, which: YesOrNo, yes_pool: float, no_pool: float) -> float:
    """Cost of buying ``amount`` shares on ``which`` side, rounded up to the cent.

    Raises ``ValueError`` when the pools admit no real price.
    """
    # For NO: X^2+(YES+NO-N)*X-N*YES=0
    # For YES: X^2+(YES+NO-N)*X-N*NO=0
    a = 1.0
    b = yes_pool + no_pool - amount
    c = -float(amount) * (no_pool if which is YesOrNo.YES else yes_pool)
    discriminant = b * b - 4.0 * a * c
    if math.isnan(discriminant) or discriminant < 0:
        raise ValueError("no real share price for these pools")
    price = (-b + math.sqrt(discriminant)) / (2.0 * a)
    # Rounding up keeps floating point error from being exploitable.
    return math.ceil(price * 100.0) / 100.0


def _format_money(value: float) -> str:
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _probability_of_yes(bet: Bet) -> float:
    total = bet.yes_pool + bet.no_pool
    return bet.no_pool / total if total else math.nan


class Market:
    """Business rules of the prediction market on top of a ``Store``."""

    def __init__(self, store: Store, clock: Optional[Callable[[], float]] = None) -> None:
        self._store = store
        self._clock = clock or time.time

    def _require_user(self, user_id: str) -> User:
        user = self._store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"No such user: {user_id}")
        return user

    def dashboard(self, user_id: str) -> Dashboard:
        """Everything the main page shows to ``user_id``."""
        store = self._store
        logs = store.list_logs()
        bets = sorted(store.list_bets(), key=lambda b: b.created_seconds_since_epoch, reverse=True)
        users = {user.id: user for user in store.list_users()}
        positions: dict[tuple[str, bool], UserBet] = {}
        for user_bet in store.list_user_bets():
            if user_bet.user_id == user_id:
                positions.setdefault((user_bet.bet_id, user_bet.is_yes), user_bet)

        if user_id not in users:
            raise NotFoundError(f"No such user: {user_id}")

        infos = []
        for bet in bets:
            creator = users.get(bet.creator_id)
            if creator is None:
                raise LookupError(f"Bet {bet.id} has a nonexistent creator")
            infos.append(
                DashboardBetInfo(
                    bet_id=bet.id,
                    name=bet.name,
                    creator_id=bet.creator_id,
                    creator_name=creator.name,
                    created_seconds_since_epoch=bet.created_seconds_since_epoch,
                    yes_pool=bet.yes_pool,
                    no_pool=bet.no_pool,
                    probability_of_yes=_probability_of_yes(bet),
                    user_yes=positions.get((bet.id, True)),
                    user_no=positions.get((bet.id, False)),
                    closed=bet.closed,
                )
            )

        return Dashboard(
            user=users[user_id],
            bets=infos,
            logs=[(math.floor(log.created_at.timestamp()), log.content) for log in logs],
        )

    def place_bet(
        self,
        user_id: str,
        bet_id: str,
        amount: int,
        which: YesOrNo,
        expected_yes_pool: float,
        expected_no_pool: float,
    ) -> float:
        """Buy ``amount`` shares and return what they cost."""
        store = self._store
        with store.transaction():
            user = self._require_user(user_id)
            if amount <= 0:
                raise BadRequestError("Can't buy 0 shares")
            bet = store.get_bet(bet_id)
            if bet is None:
                raise NotFoundError(f"No such bet: {bet_id}")
            try:
                spent = share_price(amount, which, bet.yes_pool, bet.no_pool)
            except ValueError:
                raise BadRequestError("Bet was too big for such a small starting pool") from None
            if (
                abs(expected_no_pool - bet.no_pool) >= ERROR_MARGIN
                or abs(expected_yes_pool - bet.yes_pool) >= ERROR_MARGIN
            ):
                raise ConflictError(
                    "Price changed while this request was in flight "
                    "(Reload the page and try again)"
                )
            if user.money < spent:
                raise BadRequestError("Not enough money")
            if bet.closed:
                raise BadRequestError("Market is closed")

            is_yes = which.is_yes()
            user_bet = store.get_user_bet(user_id, bet_id, is_yes) or UserBet(
                user_id=user_id, bet_id=bet_id, is_yes=is_yes, amount=0, spent=0.0
            )
            user_bet.amount += amount
            user_bet.spent += spent

            if is_yes:
                bet.yes_pool -= amount
            else:
                bet.no_pool -= amount
            bet.yes_pool += spent
            bet.no_pool += spent

            store.add_money(user_id, -spent)
            store.upsert_user_bet(user_bet)
            store.update_pools(bet_id, bet.yes_pool, bet.no_pool)
            store.insert_log(
                f'{user.name} bought {amount} {which} shares in "{bet.name}" '
                f"for ${_format_money(spent)}"
            )
        return spent

    def create_bet(self, user_id: str, name: str, starting_money: int) -> str:
        """Open a new market funded by its creator and return its id."""
        store = self._store
        with store.transaction():
            bet_id = str(uuid.uuid4())
            user = self._require_user(user_id)
            if starting_money < MIN_STARTING_MONEY:
                raise BadRequestError("You need to put in at least $20 of starting money")
            if user.money < starting_money:
                raise BadRequestError("You don't have enough money to create this bet")

            store.add_money(user_id, -float(starting_money))
            store.insert_bet(
                Bet(
                    id=bet_id,
                    creator_id=user_id,
                    name=name,
                    created_seconds_since_epoch=int(self._clock()),
                    closed=False,
                    yes_pool=float(starting_money),
                    no_pool=float(starting_money),
                )
            )
            # The starting money buys equal yes and no shares that provide liquidity
            # rather than belonging to the creator.
            for is_yes in (True, False):
                store.insert_user_bet(
                    UserBet(
                        user_id=user_id,
                        bet_id=bet_id,
                        is_yes=is_yes,
                        amount=0,
                        spent=starting_money / 2.0,
                    )
                )
            store.insert_log(
                f'{user.name} created a new market, "{name}", '
                f"with a starting pool of {starting_money}"
            )
        return bet_id

    def _creator_bet(self, user_id: str, bet_id: str) -> Bet:
        bet = self._store.get_bet(bet_id)
        if bet is None or bet.creator_id != user_id:
            raise NotFoundError(f"No such bet: {bet_id}")
        return bet

    def close_bet(self, user_id: str, bet_id: str) -> None:
        """Stop trading on a market; only its creator may do this."""
        store = self._store
        with store.transaction():
            bet = self._creator_bet(user_id, bet_id)
            user = self._require_user(user_id)
            store.close_bet(bet.id)
            store.insert_log(f'{user.name} closed the market "{bet.name}"')

    def resolve_bet(self, user_id: str, bet_id: str, which: YesOrNoOrNA) -> None:
        """Settle a market, pay out the winners and remove it."""
        store = self._store
        with store.transaction():
            bet = self._creator_bet(user_id, bet_id)
            user = self._require_user(user_id)
            user_bets = store.user_bets_for_bet(bet_id)
            store.delete_bet(bet_id)

            if which is YesOrNoOrNA.YES:
                store.add_money(bet.creator_id, bet.yes_pool)
                for user_bet in user_bets:
                    if user_bet.is_yes:
                        store.add_money(user_bet.user_id, float(user_bet.amount))
            elif which is YesOrNoOrNA.NO:
                store.add_money(bet.creator_id, bet.no_pool)
                for user_bet in user_bets:
                    if not user_bet.is_yes:
                        store.add_money(user_bet.user_id, float(user_bet.amount))
            else:
                for user_bet in user_bets:
                    store.add_money(user_bet.user_id, user_bet.spent)

            store.insert_log(
                f'{user.name} resolved the market "{bet.name}" with a result of {which}'
            )

    def give_money(self, user_id: str) -> bool:
        """Give everybody $100 if the administrator asks; report whether it happened."""
        store = self._store
        with store.transaction():
            users = store.list_users()
            admin = next((user for user in users if user.name == ADMIN_NAME), None)
            if admin is None:
                raise NotFoundError("No administrator account")
            if user_id != admin.id:
                return False
            for user in users:
                store.add_money(user.id, GIFT_AMOUNT)
            store.insert_log("$100 has been added to everybody's account")
        return True