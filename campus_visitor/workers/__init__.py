# =======================================================================================
# campus_visitor/workers/__init__.py - Workers Package
# =======================================================================================
from .mail_worker import MailWorker, mail_worker, start_mail_worker, stop_mail_worker

__all__ = ["MailWorker", "mail_worker", "start_mail_worker", "stop_mail_worker"]
