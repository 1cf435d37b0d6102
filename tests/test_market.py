import itertools
import math

import pytest

from predmarket.market import (
    BadRequestError,
    ConflictError,
    Market,
    MarketError,
    NotFoundError,
    share_price,
)
from predmarket.model import Store, User, YesOrNo, YesOrNoOrNA


@pytest.fixture
def store():
    s = Store(":memory:")
    s.insert_user(User("alice", "Alice", 100.0))
    s.insert_user(User("bob", "Bob", 100.0))
    s.insert_user(User("jeff", "Jefferson", 50.0))
    yield s
    s.close()


@pytest.fixture
def market(store):
    counter = itertools.count(1000)
    return Market(store, lambda: next(counter))


def test_share_price_worked_example():
    assert share_price(10, YesOrNo.YES, 10.0, 10.0) == pytest.approx(6.19)


@pytest.mark.parametrize("which", [YesOrNo.YES, YesOrNo.NO])
@pytest.mark.parametrize("amount,yes_pool,no_pool", [(5, 20.0, 20.0), (30, 50.0, 80.0), (1, 7.5, 3.0)])
def test_share_price_keeps_constant_product(which, amount, yes_pool, no_pool):
    price = share_price(amount, which, yes_pool, no_pool)
    if which is YesOrNo.YES:
        new_yes, new_no = yes_pool - amount + price, no_pool + price
    else:
        new_yes, new_no = yes_pool + price, no_pool - amount + price
    assert new_yes * new_no >= yes_pool * no_pool - 1e-9
    assert 0 < price < amount
    assert price * 100 == pytest.approx(round(price * 100))


def test_share_price_symmetric():
    assert share_price(7, YesOrNo.YES, 20.0, 20.0) == share_price(7, YesOrNo.NO, 20.0, 20.0)


def test_share_price_without_real_solution():
    with pytest.raises(ValueError):
        share_price(1, YesOrNo.YES, 1.0, -1.0)
    with pytest.raises(ValueError):
        share_price(1, YesOrNo.YES, math.nan, 1.0)


def test_create_bet(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    bet = store.get_bet(bet_id)
    assert (bet.name, bet.creator_id, bet.yes_pool, bet.no_pool, bet.closed) == (
        "Rain", "alice", 20.0, 20.0, False
    )
    assert bet.created_seconds_since_epoch == 1000
    assert store.get_user("alice").money == 80.0
    positions = store.user_bets_for_bet(bet_id)
    assert sorted((p.is_yes, p.amount, p.spent) for p in positions) == [(False, 0, 10.0), (True, 0, 10.0)]
    assert store.list_logs()[0].content == (
        'Alice created a new market, "Rain", with a starting pool of 20'
    )


def test_create_bet_errors(market, store):
    with pytest.raises(BadRequestError):
        market.create_bet("alice", "Cheap", 19)
    with pytest.raises(BadRequestError):
        market.create_bet("alice", "Pricey", 101)
    assert store.list_bets() == []
    assert store.get_user("alice").money == 100.0


def test_place_bet(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    expected_price = share_price(10, YesOrNo.YES, 20.0, 20.0)
    spent = market.place_bet("bob", bet_id, 10, YesOrNo.YES, 20.0, 20.0)
    assert spent == expected_price
    assert store.get_user("bob").money == pytest.approx(100.0 - spent)
    bet = store.get_bet(bet_id)
    assert bet.yes_pool == pytest.approx(20.0 - 10 + spent)
    assert bet.no_pool == pytest.approx(20.0 + spent)
    position = store.get_user_bet("bob", bet_id, True)
    assert (position.amount, position.spent) == (10, spent)
    assert store.list_logs()[0].content == f'Bob bought 10 yes shares in "Rain" for ${spent}'


def test_place_bet_accumulates(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    first = market.place_bet("bob", bet_id, 5, YesOrNo.NO, 20.0, 20.0)
    bet = store.get_bet(bet_id)
    second = market.place_bet("bob", bet_id, 5, YesOrNo.NO, bet.yes_pool, bet.no_pool)
    position = store.get_user_bet("bob", bet_id, False)
    assert position.amount == 10
    assert position.spent == pytest.approx(first + second)


def test_place_bet_errors(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    with pytest.raises(BadRequestError):
        market.place_bet("bob", bet_id, 0, YesOrNo.YES, 20.0, 20.0)
    with pytest.raises(NotFoundError):
        market.place_bet("bob", "missing", 5, YesOrNo.YES, 20.0, 20.0)
    with pytest.raises(ConflictError):
        market.place_bet("bob", bet_id, 5, YesOrNo.YES, 21.0, 20.0)
    with pytest.raises(BadRequestError):
        market.place_bet("bob", bet_id, 10000, YesOrNo.YES, 20.0, 20.0)
    assert store.get_user("bob").money == 100.0
    assert store.get_bet(bet_id).yes_pool == 20.0


def test_place_bet_on_closed_market(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    market.close_bet("alice", bet_id)
    with pytest.raises(BadRequestError):
        market.place_bet("bob", bet_id, 5, YesOrNo.YES, 20.0, 20.0)
    assert store.get_user_bet("bob", bet_id, True) is None


def test_close_bet(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    with pytest.raises(NotFoundError):
        market.close_bet("bob", bet_id)
    assert store.get_bet(bet_id).closed is False
    market.close_bet("alice", bet_id)
    assert store.get_bet(bet_id).closed is True
    assert store.list_logs()[0].content == 'Alice closed the market "Rain"'


def test_resolve_yes_pays_yes_holders(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    market.place_bet("bob", bet_id, 10, YesOrNo.YES, 20.0, 20.0)
    bob_before = store.get_user("bob").money
    yes_pool = store.get_bet(bet_id).yes_pool
    market.resolve_bet("alice", bet_id, YesOrNoOrNA.YES)
    assert store.get_bet(bet_id) is None
    assert store.user_bets_for_bet(bet_id) == []
    assert store.get_user("bob").money == pytest.approx(bob_before + 10)
    assert store.get_user("alice").money == pytest.approx(80.0 + yes_pool)
    assert store.list_logs()[0].content == 'Alice resolved the market "Rain" with a result of yes'


def test_resolve_no_leaves_yes_holders_unpaid(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    market.place_bet("bob", bet_id, 10, YesOrNo.YES, 20.0, 20.0)
    bob_before = store.get_user("bob").money
    no_pool = store.get_bet(bet_id).no_pool
    market.resolve_bet("alice", bet_id, YesOrNoOrNA.NO)
    assert store.get_user("bob").money == bob_before
    assert store.get_user("alice").money == pytest.approx(80.0 + no_pool)


def test_resolve_na_refunds_everyone(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    market.place_bet("bob", bet_id, 10, YesOrNo.NO, 20.0, 20.0)
    market.resolve_bet("alice", bet_id, YesOrNoOrNA.NA)
    assert store.get_user("alice").money == pytest.approx(100.0)
    assert store.get_user("bob").money == pytest.approx(100.0)
    assert store.list_logs()[0].content.endswith("with a result of N/A")


def test_resolve_by_other_user_is_not_found(market, store):
    bet_id = market.create_bet("alice", "Rain", 20)
    with pytest.raises(NotFoundError) as info:
        market.resolve_bet("bob", bet_id, YesOrNoOrNA.YES)
    assert info.value.status == 404
    assert store.get_bet(bet_id) is not None and store.get_bet(bet_id).name == "Rain"


def test_give_money(market, store):
    assert market.give_money("alice") is False
    assert store.get_user("alice").money == 100.0
    assert market.give_money("jeff") is True
    assert [u.money for u in store.list_users()] == [200.0, 200.0, 150.0]
    assert store.list_logs()[0].content == "$100 has been added to everybody's account"


def test_give_money_without_admin():
    with Store(":memory:") as s:
        s.insert_user(User("alice", "Alice", 1.0))
        with pytest.raises(MarketError):
            Market(s).give_money("alice")


def test_dashboard(market, store):
    first = market.create_bet("alice", "First", 20)
    second = market.create_bet("bob", "Second", 30)
    market.place_bet("alice", second, 3, YesOrNo.YES, 30.0, 30.0)
    board = market.dashboard("alice")
    assert board.user.name == "Alice"
    assert [b.bet_id for b in board.bets] == [second, first]
    newest = board.bets[0]
    assert newest.creator_name == "Bob"
    assert newest.user_yes.amount == 3
    assert newest.user_no is None
    assert newest.probability_of_yes > 0.5
    assert board.bets[1].probability_of_yes == 0.5
    assert board.bets[1].user_yes.spent == 10.0
    assert board.logs[0][1].startswith("Alice bought 3 yes shares")
    assert len(board.logs) == 3


def test_dashboard_unknown_user(market):
    with pytest.raises(NotFoundError):
        market.dashboard("nobody")