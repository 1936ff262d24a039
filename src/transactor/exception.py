class TransactorError(Exception):
    ...
