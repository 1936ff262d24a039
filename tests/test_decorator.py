from unittest.mock import Mock

from transactor import Outcome, set_error_code, transactional


def test_transactional_plain(connection, events):
    @transactional
    def rename(conn, item_id, name):
        conn.execute("UPDATE items SET name = ? WHERE item_id = ?")
        return item_id == 1

    assert rename.__name__ == "rename"
    assert rename(connection, 1, "foo").succeeded
    assert not rename(connection, item_id=2, name="foo").succeeded
    assert events == [
        "autocommit=False",
        "commit",
        "autocommit=True",
        "autocommit=False",
        "rollback",
        "autocommit=True",
    ]


def test_transactional_with_callbacks(connection):
    on_rollback = Mock()

    @transactional(on_rollback=on_rollback)
    def refuse(conn):
        set_error_code(8)
        return False

    result = refuse(connection)

    assert result.error_code == 8
    on_rollback.assert_called_once()


async def test_transactional_coroutine(async_connection, events):
    @transactional
    async def create(conn, name):
        await conn.execute("INSERT INTO items (name) VALUES (?)", (name,))
        return True

    result = await create(async_connection, "foo")

    assert result.outcome is Outcome.COMMITTED
    async_connection.execute.assert_awaited_once()
    assert events == ["autocommit=False", "commit", "autocommit=True"]
