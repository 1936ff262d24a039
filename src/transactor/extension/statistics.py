from collections import defaultdict
from functools import partial
from logging import Logger
from typing import DefaultDict, Dict

from transactor.transaction.interfaces import Outcome, TransactionResult
from transactor.transaction.router import Hook


class TransactionCounter:
    """Counts attempt outcomes per transaction name.

    Example:

    ```python
    counter = TransactionCounter()
    run_transaction(conn, transfer, **counter.watch("transfer"))
    log_statistics_report(logger, counter)
    ```
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self):
        self._counter: DefaultDict[str, DefaultDict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )

    def record(self, name: str, result: TransactionResult) -> None:
        self._counter[name][result.outcome.value] += 1

    def hook(self, name: str) -> Hook:
        return partial(self.record, name)

    def watch(self, name: str) -> Dict[str, Hook]:
        """Callbacks for ``run_transaction`` that count every attempt"""
        hook = self.hook(name)
        return {"on_commit": hook, "on_rollback": hook}

    def __getitem__(self, name: str) -> Dict[str, int]:
        return dict(self._counter.get(name, {}))

    def items(self):
        return self._counter.items()


def log_statistics_report(logger: Logger, counter: TransactionCounter):
    COLUMN_SIZE = 15
    keys = [
        outcome.value.rjust(COLUMN_SIZE)
        for outcome in Outcome
        if any(outcome.value in counts for _, counts in counter.items())
    ]
    names = [name for name, _ in counter.items()]
    if not names:
        logger.warning("No transaction counters found")
        return

    max_name = max(map(len, names))
    headers = " | ".join([" " * max_name, *keys])
    row_data = [
        " | ".join(
            [
                name.rjust(max_name),
                *[
                    str(counts.get(key.strip(), "-")).rjust(COLUMN_SIZE)
                    for key in keys
                ],
            ]
        )
        for name, counts in sorted(counter.items(), key=lambda x: x[0])
    ]
    rows = "\n".join(row_data)
    total_values: DefaultDict[str, int] = defaultdict(int)
    for _, counts in counter.items():
        for key, value in counts.items():
            total_values[key] += value
    divider = "=" * len(row_data[0])
    totals = " | ".join(
        [
            "TOTALS".rjust(max_name),
            *[
                str(total_values.get(key.strip(), "-")).rjust(COLUMN_SIZE)
                for key in keys
            ],
        ]
    )
    title = "TRANSACTION OUTCOMES".center(len(divider))

    logger.info(
        f"Transaction Statistics Report\n\n{title}\n\n{headers}\n"
        f"{rows}\n{divider}\n{totals}\n\n"
    )
