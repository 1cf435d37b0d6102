# predmarket

A small play-money prediction market library. Players open yes/no markets and
fund them with starting liquidity. Other players buy "yes" or "no" shares at
prices set by an automated market maker. When the outcome is known, the
market's creator resolves it and the winners are paid. All state is kept in
SQLite.

## Modules

- `predmarket.model` defines the data types and the store:
  - data types: `User`, `Bet`, `UserBet` (a player's position on one side of a
    market), `LogMessage`, and the enums `YesOrNo` and `YesOrNoOrNA`;
  - `Store`, a SQLite-backed store. It opens `":memory:"` by default or a file
    path. `Store.transaction()` is a context manager that commits on success
    and rolls back on error. `Store` can also be used as a context manager,
    which closes the connection on exit.
  - `connection_url(username, password)` builds a `postgres://` connection
    string for host `localhost`, port 5432 and database `betting`. It
    form-encodes the password. It only builds the string and does not open a
    connection.
- `predmarket.market` holds the market rules:
  - `share_price(amount, which, yes_pool, no_pool)` gives the cost of `amount`
    shares, rounded up to the next cent. It raises `ValueError` when the pools
    admit no real price.
  - `Market(store, clock=None)` carries out the market actions listed below.
    `clock` returns seconds since the epoch and defaults to `time.time`.
- `predmarket.leaderboard` provides:
  - `compute_leaderboard(users, bets, user_bets)`;
  - `leaderboard(store)`.

  Both return a `LeaderboardEntry` for each user, in store order, with:
  - `liquid_money`: the user's current money;
  - `expected_money`: current money plus holdings valued at the
    market-implied probability;
  - `max_money`: current money plus the best-case payout.
- `predmarket.cors` decides which origins a front end may call from:
  - `is_running_on_lambda(environ=None)` checks whether
    `AWS_LAMBDA_RUNTIME_API` is set;
  - `is_origin_allowed(origin, environ=None)` accepts origins ending in
    `betting.example.com` when running on Lambda, and `http://localhost:`
    origins otherwise;
  - `cors_headers(origin, environ=None)` returns the matching
    `Access-Control-*` response headers, or an empty dict if the origin is
    refused.
- `predmarket.logging_setup.init_default_debug_logger()` sets the root logger
  to DEBUG and sets a few noisy library loggers to INFO or WARNING.

## Market rules

`Market` provides these actions:

- `create_bet(user_id, name, starting_money)` opens a market and returns its
  id.
  - `starting_money` must be at least 20 and no more than the creator's money.
  - The money is taken from the creator and becomes both the yes pool and the
    no pool.
  - Two zero-share positions, each recording half the starting money as
    spent, are stored for the creator.
- `place_bet(user_id, bet_id, amount, which, expected_yes_pool,
  expected_no_pool)` buys shares and returns their cost.
  - The caller passes the pool sizes they last saw. If either pool has since
    moved by 1e-7 or more, the purchase is refused.
  - A successful purchase updates:
    - the pools;
    - the buyer's money;
    - the buyer's position.
- `close_bet(user_id, bet_id)` stops trading on a market. Only its creator may
  call it.
- `resolve_bet(user_id, bet_id, which)` settles a market and deletes it. Only
  its creator may call it.
  - On `YES`, the creator receives the yes pool and each yes position is paid
    its share count.
  - On `NO`, the same happens for the no side.
  - On `NA`, every position is refunded what was spent on it.
- `give_money(user_id)` adds $100 to every account when called by the user
  named "Jefferson". It returns whether this happened.
- `dashboard(user_id)` returns a `Dashboard` with:
  - the user;
  - a `DashboardBetInfo` for each market, newest first, including the
    implied probability of yes and the user's own positions;
  - up to 100 recent log entries as `(seconds, text)` pairs.

Every action writes a message to the activity log. `Store.list_logs()` returns
the latest 100 entries, newest first.

## Example

```python
from predmarket.model import Store, User, YesOrNo, YesOrNoOrNA
from predmarket.market import Market, share_price
from predmarket.leaderboard import leaderboard

store = Store(":memory:")
store.insert_user(User(id="alice", name="Alice", money=100.0))
store.insert_user(User(id="bob", name="Bob", money=100.0))

market = Market(store, clock=lambda: 1_700_000_000)
bet_id = market.create_bet("alice", "Will it rain tomorrow?", 50)

bet = store.get_bet(bet_id)
print(share_price(10, YesOrNo.YES, bet.yes_pool, bet.no_pool))

market.place_bet("bob", bet_id, 10, YesOrNo.YES, bet.yes_pool, bet.no_pool)
market.resolve_bet("alice", bet_id, YesOrNoOrNA.YES)

for entry in leaderboard(store):
    print(entry.name, entry.liquid_money, entry.expected_money, entry.max_money)
```

## Errors

Refused actions raise subclasses of `predmarket.market.MarketError`. Each
subclass carries the matching HTTP status in `status`.

| Exception | `status` | Raised when |
| --- | --- | --- |
| `BadRequestError` | 400 | buying zero or fewer shares; the order is too large for the pools; not enough money; the market is closed; starting money under 20; not enough money to create a market |
| `NotFoundError` | 404 | the user or market does not exist; the caller is not the market's creator; no "Jefferson" account exists for `give_money` |
| `ConflictError` | 409 | the pools changed since the caller last looked |

## What it does not do

This is a library only. It does not provide:

- a web server, HTML pages or templates;
- login, sessions or cookie handling;
- loading of deployment secrets;
- any command to run.

User accounts are created directly with `Store.insert_user`. Callers must
identify the acting user themselves.

## Tests

```
pip install -e .[test]
pytest
```