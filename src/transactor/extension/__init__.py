from .statistics import TransactionCounter, log_statistics_report

__all__ = ("TransactionCounter", "log_statistics_report")
