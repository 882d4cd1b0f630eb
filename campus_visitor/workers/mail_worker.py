# =======================================================================================
# campus_visitor/workers/mail_worker.py - Background Mail Worker
# =======================================================================================
import logging
import queue
import threading
from typing import Optional

from ..config import config
from ..services.mailer import EmailJob, SMTPMailer

logger = logging.getLogger(__name__)


class MailWorker:
    """Background worker that drains the outgoing email queue."""

    def __init__(self, mailer: Optional[SMTPMailer] = None):
        self.mailer = mailer or SMTPMailer()
        self.jobs: "queue.Queue[EmailJob]" = queue.Queue()
        self.running = False
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self):
        """Start the mail worker in a background thread."""
        if self.running or not self._should_start():
            return

        self.running = True
        self._thread = threading.Thread(target=self._run_loop, name="mail-worker", daemon=True)
        self._thread.start()
        logger.info("Mail worker started")

    def stop(self):
        """Stop the mail worker; queued mail that was not sent is dropped."""
        self.running = False

    def submit(self, job: EmailJob) -> None:
        """Queue an email; never blocks on delivery."""
        if not self.running:
            logger.debug("Mail worker not running; %s email to %s not sent", job.kind, job.to)
            return
        self.jobs.put(job)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def _should_start(self) -> bool:
        if not config.NOTIFICATIONS_ENABLED:
            logger.info("NOTIFICATIONS_ENABLED is false; skipping mail worker.")
            return False

        if not self.mailer.is_configured():
            logger.warning("SMTP_USER/SMTP_PASSWORD not set; skipping mail worker.")
            return False

        return True

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def _run_loop(self):
        while self.running:
            try:
                job = self.jobs.get(timeout=1)
            except queue.Empty:
                continue
            try:
                self.mailer.send(job)
            except Exception:
                logger.exception("Unexpected error sending %s email to %s", job.kind, job.to)
            finally:
                self.jobs.task_done()

# ----------------------------------------------------------------------
# Global instance + entrypoint
# ----------------------------------------------------------------------
mail_worker = MailWorker()


def start_mail_worker():
    """Called from FastAPI startup."""
    mail_worker.start()


def stop_mail_worker():
    mail_worker.stop()
