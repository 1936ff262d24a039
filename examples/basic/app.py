import logging
import sqlite3
from dataclasses import dataclass

from transactor import TransactionController

INSUFFICIENT_FUNDS = 1


@dataclass
class Account:
    id: int
    owner: str
    balance: int


class Transfer(TransactionController):
    def __init__(self, source: int, target: int, amount: int):
        super().__init__()
        self.source = source
        self.target = target
        self.amount = amount

    def process(self, conn: sqlite3.Connection) -> bool:
        conn.execute(
            "UPDATE accounts SET balance = balance - ? WHERE id = ?",
            (self.amount, self.source),
        )
        conn.execute(
            "UPDATE accounts SET balance = balance + ? WHERE id = ?",
            (self.amount, self.target),
        )
        (balance,) = conn.execute(
            "SELECT balance FROM accounts WHERE id = ?", (self.source,)
        ).fetchone()
        if balance < 0:
            self.set_error_code(INSUFFICIENT_FUNDS)
            return False
        return True

    def on_rollback_code(self, error_code):
        print(f"Transfer refused with code {error_code}")


def accounts(conn: sqlite3.Connection):
    return [
        Account(*row)
        for row in conn.execute("SELECT id, owner, balance FROM accounts")
    ]


def run():
    logging.basicConfig(level=logging.DEBUG)
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.execute(
        "CREATE TABLE accounts (id INTEGER PRIMARY KEY, owner TEXT, "
        "balance INTEGER)"
    )
    conn.executemany(
        "INSERT INTO accounts VALUES (?, ?, ?)",
        [(1, "alice", 100), (2, "bob", 10)],
    )

    print(Transfer(1, 2, 30).start(conn))
    print(accounts(conn))
    print(Transfer(2, 1, 500).start(conn))
    print(accounts(conn))


run()
